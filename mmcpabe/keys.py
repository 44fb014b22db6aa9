from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from mmcpabe.errors import MalformedInput
from mmcpabe.group import require_element
from mmcpabe.policy import Connector, Policy


# ---------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class MasterPublicKey:
    g: Any          # generator of G1
    B1: Any         # g^beta1
    B2: Any         # g^beta2
    B3: Any         # g^beta3
    Y: Any          # e(g,g)^alpha


@dataclass(frozen=True)
class MasterSecretKey:
    alpha: Any = field(repr=False)
    beta1: Any = field(repr=False)
    beta2: Any = field(repr=False)
    beta3: Any = field(repr=False)
    theta: Any = field(repr=False)   # seeds the deterministic key randomness


@dataclass(frozen=True)
class SecretKey:
    """
    kind is OR for a single-attribute key and AND for a key over both
    of the user's attributes.
    """
    user_id: str
    kind: Connector
    attributes: Tuple[str, ...]
    D: Any                          # g^((alpha + r) / beta3)
    Dj: Dict[str, Any]              # {attr: g^(r + (beta1 + beta2 x_attr) r_attr)}
    Djp: Dict[str, Any]             # {attr: g^(r_attr)}


@dataclass(frozen=True)
class Ciphertext:
    user_id: str
    policy: Policy
    C_tilde: Any                    # K * e(g,g)^(alpha s)
    C: Any                          # B3^s
    Cy: Tuple[Any, Any]             # g^(s_i)
    Cyp: Tuple[Any, Any]            # (B1 B2^(x_i))^(s_i)
    VK: str                         # SHA-256 commitment to K
    CS: str                         # authenticated symmetric payload


@dataclass(frozen=True)
class MultiCiphertext:
    slots: Tuple[Ciphertext, Ciphertext]

    @property
    def user_id(self):
        return self.slots[0].user_id


# ---------------------------------------------------------------------
# Structural checks, run before any pairing is evaluated
# ---------------------------------------------------------------------

def check_public_key(mpk):
    if not isinstance(mpk, MasterPublicKey):
        raise MalformedInput("expected a MasterPublicKey")
    for name in ('g', 'B1', 'B2', 'B3', 'Y'):
        require_element(getattr(mpk, name), "mpk.%s" % name)
    return mpk


def check_master_key(msk):
    if not isinstance(msk, MasterSecretKey):
        raise MalformedInput("expected a MasterSecretKey")
    for name in ('alpha', 'beta1', 'beta2', 'beta3', 'theta'):
        require_element(getattr(msk, name), "msk.%s" % name)
    return msk


def check_user_id(user_id):
    if not isinstance(user_id, str) or not user_id:
        raise MalformedInput("user identity must be a non-empty string")
    return user_id


def normalize_attributes(attributes):
    """A single token or a pair of distinct tokens, returned sorted."""
    if isinstance(attributes, str):
        attributes = (attributes,)
    try:
        attrs = tuple(attributes)
    except TypeError as e:
        raise MalformedInput("attributes must be a token or a pair of tokens") from e
    if len(attrs) not in (1, 2):
        raise MalformedInput("a key covers one or two attributes, got %d" % len(attrs))
    for a in attrs:
        if not isinstance(a, str) or not a:
            raise MalformedInput("attributes must be non-empty strings")
    if len(set(attrs)) != len(attrs):
        raise MalformedInput("key attributes must be distinct")
    return tuple(sorted(attrs))


def check_secret_key(sk):
    if not isinstance(sk, SecretKey):
        raise MalformedInput("expected a SecretKey")
    check_user_id(sk.user_id)
    expected = {Connector.OR: 1, Connector.AND: 2}.get(sk.kind)
    if expected is None or len(sk.attributes) != expected:
        raise MalformedInput("key kind does not match its attribute count")
    if len(set(sk.attributes)) != len(sk.attributes):
        raise MalformedInput("key attributes must be distinct")
    if not isinstance(sk.Dj, dict) or not isinstance(sk.Djp, dict):
        raise MalformedInput("key components must be keyed by attribute")
    if set(sk.Dj) != set(sk.attributes) or set(sk.Djp) != set(sk.attributes):
        raise MalformedInput("key components do not match its attributes")
    require_element(sk.D, "key.D")
    for attr in sk.attributes:
        require_element(sk.Dj[attr], "key.Dj[%s]" % attr)
        require_element(sk.Djp[attr], "key.Djp[%s]" % attr)
    return sk


def check_ciphertext(ct):
    if not isinstance(ct, Ciphertext):
        raise MalformedInput("expected a Ciphertext")
    check_user_id(ct.user_id)
    if not isinstance(ct.policy, Policy):
        raise MalformedInput("ciphertext policy is not a Policy")
    if len(ct.Cy) != 2 or len(ct.Cyp) != 2:
        raise MalformedInput("ciphertext must carry two attribute components")
    require_element(ct.C_tilde, "ct.C_tilde")
    require_element(ct.C, "ct.C")
    for i in range(2):
        require_element(ct.Cy[i], "ct.Cy[%d]" % i)
        require_element(ct.Cyp[i], "ct.Cyp[%d]" % i)
    if not isinstance(ct.VK, str) or not isinstance(ct.CS, str):
        raise MalformedInput("ciphertext tag and payload must be strings")
    parse_payload(ct.CS)
    return ct


def parse_payload(CS):
    """
    Decode the symmetric payload into the dict charm's authenticated
    cipher expects: str 'alg', 'msg' and 'digest' fields.
    """
    try:
        payload = json.loads(CS)
    except (TypeError, ValueError) as e:
        raise MalformedInput("ciphertext payload is not valid JSON") from e
    if not isinstance(payload, dict):
        raise MalformedInput("ciphertext payload must be a JSON object")
    for name in ('alg', 'msg', 'digest'):
        if not isinstance(payload.get(name), str):
            raise MalformedInput("ciphertext payload is missing a string %r field" % name)
    return payload


def check_multi_ciphertext(mct):
    if not isinstance(mct, MultiCiphertext):
        raise MalformedInput("expected a MultiCiphertext")
    if len(mct.slots) != 2:
        raise MalformedInput("a multi-ciphertext carries exactly two slots")
    for ct in mct.slots:
        check_ciphertext(ct)
    if mct.slots[1].user_id != mct.user_id:
        raise MalformedInput("multi-ciphertext slots disagree on the identity")
    return mct
