from mmcpabe.authority import Authority
from mmcpabe.errors import (
    CPABEError, DoubleSetup, DuplicateIdentity, MalformedInput, PolicyNotSatisfied,
    UnknownAttribute,
)
from mmcpabe.group import DEFAULT_GROUP
from mmcpabe.keys import Ciphertext, MasterPublicKey, MasterSecretKey, MultiCiphertext, SecretKey
from mmcpabe.policy import AND, OR, Connector, Policy
from mmcpabe.scheme import MultiMessageCPABE

__version__ = "0.1.0"
