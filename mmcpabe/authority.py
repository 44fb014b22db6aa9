# ============================================================
# Master key authority
#
# Owns the master secret key, enforces the single-setup rule and
# keeps the registry of identities and the two attribute tokens
# issued to each of them.
# ============================================================

import logging
import secrets
import threading

from mmcpabe.errors import DoubleSetup, DuplicateIdentity, MalformedInput, UnknownAttribute
from mmcpabe.group import DEFAULT_GROUP
from mmcpabe.keys import check_user_id, normalize_attributes
from mmcpabe.scheme import MultiMessageCPABE

logger = logging.getLogger(__name__)

ATTRIBUTES_PER_USER = 2
TOKEN_BYTES = 16


class Authority:
    """
    Key authority for one MultiMessageCPABE instance.

    The master secret key never leaves this object except through
    reveal_master_secret(), which models a compromise.
    """

    def __init__(self, scheme=None, group_name=DEFAULT_GROUP):
        self.scheme = scheme if scheme is not None else MultiMessageCPABE(group_name)
        self._lock = threading.Lock()
        self._mpk = None
        self._msk = None
        self.registry = {}   # user_id -> (att1, att2)
        self.compromised = False

    # ---------- Setup ----------
    def setup(self):
        """Run Setup once and return the master public key."""
        with self._lock:
            if self._mpk is not None:
                raise DoubleSetup("authority is already set up")
            self._mpk, self._msk = self.scheme.setup()
        logger.info("authority set up over %s", self.scheme.ctx.name)
        return self._mpk

    @property
    def mpk(self):
        if self._mpk is None:
            raise MalformedInput("authority has not been set up")
        return self._mpk

    # ---------- Registration ----------
    def register_user(self, user_id=None):
        """
        Register an identity and mint its two attribute tokens.

        A fresh identity is generated unless one is given; registering
        the same identity twice raises DuplicateIdentity.
        """
        with self._lock:
            if user_id is None:
                user_id = secrets.token_hex(TOKEN_BYTES)
                while user_id in self.registry:
                    user_id = secrets.token_hex(TOKEN_BYTES)
            check_user_id(user_id)
            if user_id in self.registry:
                raise DuplicateIdentity("identity %r is already registered" % user_id)
            attrs = tuple(secrets.token_hex(TOKEN_BYTES) for _ in range(ATTRIBUTES_PER_USER))
            self.registry[user_id] = attrs
        logger.info("registered identity %s", user_id)
        return user_id, attrs

    def attributes_of(self, user_id):
        try:
            return self.registry[user_id]
        except KeyError:
            raise UnknownAttribute("identity %r is not registered" % user_id) from None

    # ---------- KeyGen ----------
    def keygen(self, attributes, user_id):
        """
        Issue a key for one (OR-key) or both (AND-key) of the user's
        attributes. Attributes issued to someone else are refused.
        """
        if self._msk is None:
            raise MalformedInput("authority has not been set up")
        owned = self.attributes_of(user_id)
        requested = normalize_attributes(attributes)
        for attr in requested:
            if attr not in owned:
                raise UnknownAttribute("attribute %r was not issued to %r" % (attr, user_id))
        sk = self.scheme.keygen(self._mpk, self._msk, requested, user_id)
        logger.debug("issued %s-key for %s", sk.kind.value, user_id)
        return sk

    # ---------- Compromise hook ----------
    def reveal_master_secret(self):
        """
        Hand out the master secret key.

        Models the adversary's reveal capability for compromise tests;
        after this call nothing issued by the authority is protected.
        """
        if self._msk is None:
            raise MalformedInput("authority has not been set up")
        logger.warning("master secret key revealed; authority is compromised")
        self.compromised = True
        return self._msk
