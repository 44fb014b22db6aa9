# ============================================================
# Session-key helpers
#
# kdf derives the symmetric payload key from a GT element, salted
# with the recipient identity. key_check is the public tag that
# lets a decryptor tell whether it recovered the right GT element.
# ============================================================
import hashlib


def kdf(group, K_gt, user_id):
    """
    Derive a symmetric key from a GT element using SHA-256 over its
    serialized byte representation, salted with the user identity.
    """
    h = hashlib.sha256()
    h.update(b"mmcpabe-kdf")
    h.update(user_id.encode("utf-8"))
    h.update(group.serialize(K_gt))
    return h.digest()


def key_check(group, K_gt):
    """
    Public commitment to the session key. Lets decryption tell a wrong
    key apart from a right one before the payload is touched.
    """
    h = hashlib.sha256()
    h.update(b"mmcpabe-vk")
    h.update(group.serialize(K_gt))
    return h.hexdigest()
