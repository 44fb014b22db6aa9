# ============================================================
# Byte encoding for keys and ciphertexts
#
# Every value becomes a UTF-8 JSON document. Group elements are
# stored as charm's own "<type>:<base64>" serialization, so decoding
# can check the element type before deserializing it.
# ============================================================

import json

from charm.toolbox.pairinggroup import ZR, G1, GT

from mmcpabe.errors import MalformedInput
from mmcpabe.keys import (
    Ciphertext, MasterPublicKey, MasterSecretKey, MultiCiphertext, SecretKey,
    check_ciphertext, check_master_key, check_multi_ciphertext, check_public_key,
    check_secret_key,
)
from mmcpabe.policy import Connector, Policy

FORMAT_VERSION = 1

MPK_T = 'mpk'
MSK_T = 'msk'
SK_T = 'sk'
CT_T = 'ct'
MCT_T = 'mct'

# field -> group of the element stored there
mpk_t = {'g': G1, 'B1': G1, 'B2': G1, 'B3': G1, 'Y': GT}
msk_t = {'alpha': ZR, 'beta1': ZR, 'beta2': ZR, 'beta3': ZR, 'theta': ZR}


# ---------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------

def _ciphertext_doc(ctx, ct):
    s = ctx.element_to_str
    return {
        'user_id': ct.user_id,
        'policy': {'attributes': list(ct.policy.attributes), 'connector': ct.policy.connector.value},
        'C_tilde': s(ct.C_tilde),
        'C': s(ct.C),
        'Cy': [s(e) for e in ct.Cy],
        'Cyp': [s(e) for e in ct.Cyp],
        'VK': ct.VK,
        'CS': ct.CS,
    }


def to_document(ctx, obj):
    s = ctx.element_to_str
    if isinstance(obj, MasterPublicKey):
        check_public_key(obj)
        body = {name: s(getattr(obj, name)) for name in mpk_t}
        kind = MPK_T
    elif isinstance(obj, MasterSecretKey):
        check_master_key(obj)
        body = {name: s(getattr(obj, name)) for name in msk_t}
        kind = MSK_T
    elif isinstance(obj, SecretKey):
        check_secret_key(obj)
        body = {
            'user_id': obj.user_id,
            'kind': obj.kind.value,
            'attributes': list(obj.attributes),
            'D': s(obj.D),
            'Dj': {a: s(obj.Dj[a]) for a in obj.attributes},
            'Djp': {a: s(obj.Djp[a]) for a in obj.attributes},
        }
        kind = SK_T
    elif isinstance(obj, Ciphertext):
        check_ciphertext(obj)
        body = _ciphertext_doc(ctx, obj)
        kind = CT_T
    elif isinstance(obj, MultiCiphertext):
        check_multi_ciphertext(obj)
        body = {'slots': [_ciphertext_doc(ctx, ct) for ct in obj.slots]}
        kind = MCT_T
    else:
        raise MalformedInput("cannot encode %s" % type(obj).__name__)
    return {'v': FORMAT_VERSION, 'type': kind, 'group': ctx.name, 'body': body}


def dumps(ctx, obj):
    """Encode a key, master key or ciphertext as bytes."""
    doc = to_document(ctx, obj)
    return json.dumps(doc, sort_keys=True, separators=(',', ':')).encode('utf-8')


# ---------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------

def _field(doc, name, kind=None):
    if not isinstance(doc, dict) or name not in doc:
        raise MalformedInput("missing field %r" % name)
    value = doc[name]
    if kind is not None and not isinstance(value, kind):
        raise MalformedInput("field %r has the wrong type" % name)
    return value


def _pair(ctx, doc, name, expected):
    items = _field(doc, name, list)
    if len(items) != 2:
        raise MalformedInput("field %r must hold two elements" % name)
    return tuple(ctx.element_from_str(e, expected) for e in items)


def _ciphertext_from(ctx, body):
    p = _field(body, 'policy', dict)
    policy = Policy(tuple(_field(p, 'attributes', list)), _field(p, 'connector', str))
    ct = Ciphertext(
        user_id=_field(body, 'user_id', str),
        policy=policy,
        C_tilde=ctx.element_from_str(_field(body, 'C_tilde'), GT),
        C=ctx.element_from_str(_field(body, 'C'), G1),
        Cy=_pair(ctx, body, 'Cy', G1),
        Cyp=_pair(ctx, body, 'Cyp', G1),
        VK=_field(body, 'VK', str),
        CS=_field(body, 'CS', str),
    )
    return check_ciphertext(ct)


def _secret_key_from(ctx, body):
    attrs = tuple(_field(body, 'attributes', list))
    Dj = _field(body, 'Dj', dict)
    Djp = _field(body, 'Djp', dict)
    if set(Dj) != set(attrs) or set(Djp) != set(attrs):
        raise MalformedInput("key components do not match its attributes")
    try:
        kind = Connector(_field(body, 'kind', str))
    except ValueError as e:
        raise MalformedInput("unknown key kind") from e
    sk = SecretKey(
        user_id=_field(body, 'user_id', str),
        kind=kind,
        attributes=attrs,
        D=ctx.element_from_str(_field(body, 'D'), G1),
        Dj={a: ctx.element_from_str(Dj[a], G1) for a in attrs},
        Djp={a: ctx.element_from_str(Djp[a], G1) for a in attrs},
    )
    return check_secret_key(sk)


def from_document(ctx, doc):
    if _field(doc, 'v') != FORMAT_VERSION:
        raise MalformedInput("unsupported format version %r" % doc.get('v'))
    if _field(doc, 'group') != ctx.name:
        raise MalformedInput("value was encoded for group %r, not %r" % (doc['group'], ctx.name))
    kind = _field(doc, 'type', str)
    body = _field(doc, 'body', dict)

    if kind == MPK_T:
        return MasterPublicKey(**{n: ctx.element_from_str(_field(body, n), t) for n, t in mpk_t.items()})
    if kind == MSK_T:
        return MasterSecretKey(**{n: ctx.element_from_str(_field(body, n), t) for n, t in msk_t.items()})
    if kind == SK_T:
        return _secret_key_from(ctx, body)
    if kind == CT_T:
        return _ciphertext_from(ctx, body)
    if kind == MCT_T:
        slots = _field(body, 'slots', list)
        if len(slots) != 2:
            raise MalformedInput("a multi-ciphertext carries exactly two slots")
        mct = MultiCiphertext(slots=tuple(_ciphertext_from(ctx, b) for b in slots))
        return check_multi_ciphertext(mct)
    raise MalformedInput("unknown value type %r" % kind)


def loads(ctx, data):
    """Decode bytes produced by dumps(); raises MalformedInput on anything else."""
    if not isinstance(data, (bytes, bytearray)):
        raise MalformedInput("encoded value must be bytes")
    try:
        doc = json.loads(bytes(data).decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedInput("not a valid encoding: %s" % e) from e
    return from_document(ctx, doc)
