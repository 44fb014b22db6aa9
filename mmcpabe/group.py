# ============================================================
# Group arithmetic layer
#
# Thin wrapper around charm's PairingGroup. Everything above this
# module works with a GroupContext instead of touching charm
# directly, so the curve is chosen in exactly one place.
# ============================================================

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, GT, pair, pc_element

from mmcpabe.errors import MalformedInput
from mmcpabe.utils.hashing import hash_to_ZR

DEFAULT_GROUP = 'SS512'

# Domain tags for the hashes into Z_p
ATTR_TAG = b"mmcpabe-attribute"
KEY_R_TAG = b"mmcpabe-keygen-r"
KEY_RJ_TAG = b"mmcpabe-keygen-rj"

GROUP_NAMES = {ZR: 'ZR', G1: 'G1', GT: 'GT'}


class GroupContext:
    """
    Bilinear group used by the scheme.

    The default 'SS512' curve is symmetric, so G1 doubles as G2 and
    pair(g, g) is well defined.
    """

    def __init__(self, group_name=DEFAULT_GROUP):
        self.name = group_name
        self.group = PairingGroup(group_name)

    # ---------- sampling ----------
    def random_scalar(self):
        return self.group.random(ZR)

    def random_generator(self):
        return self.group.random(G1)

    def random_gt(self):
        return self.group.random(GT)

    def gt_identity(self):
        return self.group.init(GT, 1)

    # ---------- arithmetic ----------
    def pair(self, a, b):
        return pair(a, b)

    def hash_to_ZR(self, *parts):
        return hash_to_ZR(self.group, *parts)

    def attribute_exponent(self, user_id, attribute):
        """x = H(uid, attribute): ties an attribute token to one identity."""
        return self.hash_to_ZR(ATTR_TAG, user_id, attribute)

    # ---------- (de)serialization ----------
    def element_to_str(self, element):
        # charm serializes as b"<type>:<base64>", which is plain ASCII
        return self.group.serialize(element).decode('ascii')

    def element_from_str(self, data, expected):
        if not isinstance(data, str):
            raise MalformedInput("group element must be encoded as a string")
        prefix = "%d:" % expected
        if not data.startswith(prefix):
            raise MalformedInput("expected a %s element" % GROUP_NAMES[expected])
        try:
            element = self.group.deserialize(data.encode('ascii'))
        except Exception as e:
            raise MalformedInput("undecodable %s element: %s" % (GROUP_NAMES[expected], e)) from e
        if element is None:
            raise MalformedInput("undecodable %s element" % GROUP_NAMES[expected])
        return element


def require_element(value, field):
    """Reject anything that is not a pairing element before it reaches pair()."""
    if not isinstance(value, pc_element):
        raise MalformedInput("%s is not a group element" % field)
    return value
