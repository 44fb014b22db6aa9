from charm.toolbox.pairinggroup import ZR


def _as_bytes(group, part):
    if isinstance(part, bytes):
        return part
    if isinstance(part, str):
        return part.encode("utf-8")
    return group.serialize(part)


def hash_to_ZR(group, *parts):
    """
    Safely hash arbitrary data (bytes, str or group elements) into ZR.

    Each part is length-prefixed, so ("ab", "c") and ("a", "bc")
    land on different scalars.
    """
    raw = b""
    for part in parts:
        data = _as_bytes(group, part)
        raw += len(data).to_bytes(4, "big") + data
    return group.hash(raw, ZR)
