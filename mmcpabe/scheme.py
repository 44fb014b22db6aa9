# ============================================================
# Multi-message CP-ABE with identity-bound, deterministic keys
#
# Two-attribute AND/OR policies over a symmetric pairing group.
# A multi-ciphertext bundles two independently-policied messages,
# so a key that satisfies only one policy recovers only that one.
# ============================================================

import json
import logging

from charm.toolbox.symcrypto import AuthenticatedCryptoAbstraction

from mmcpabe import encoding
from mmcpabe.errors import MalformedInput, PolicyNotSatisfied
from mmcpabe.group import DEFAULT_GROUP, GroupContext, KEY_R_TAG, KEY_RJ_TAG
from mmcpabe.keys import (
    Ciphertext, MasterPublicKey, MasterSecretKey, MultiCiphertext, SecretKey,
    check_ciphertext, check_master_key, check_multi_ciphertext, check_public_key,
    check_secret_key, check_user_id, normalize_attributes, parse_payload,
)
from mmcpabe.policy import AND, OR, Policy
from mmcpabe.utils.kdf import kdf, key_check

logger = logging.getLogger(__name__)


class MultiMessageCPABE:
    """
    CP-ABE over flat two-attribute policies, with a multi-message mode.

    ------------------------- Keys -------------------------

    Setup samples alpha, beta1, beta2, beta3, theta in Z_p and publishes

        MPK = { g, B1 = g^beta1, B2 = g^beta2, B3 = g^beta3, Y = e(g,g)^alpha }

    Each attribute token a of user u is mapped to

        x_a  = H(u, a)
        F(a) = B1 * B2^(x_a) = g^(beta1 + beta2 x_a)

    so the same token under another identity is a different group
    element. A key for attribute set S (one attribute -> OR-key, both
    -> AND-key) uses

        r    = H(theta, u, kind, S)
        r_a  = H(theta, u, kind, S, a)

        D    = g^((alpha + r) / beta3)
        D_a  = g^r * F(a)^(r_a)
        D'_a = g^(r_a)

    No fresh randomness: the same inputs always give the same key,
    while r differs between users and attribute sets, which is what
    stops two keys from being spliced together.

    ---------------------- Ciphertext ----------------------

    For policy (a1, a2, connector) and identity u, with fresh s and a
    fresh session key K in GT:

        AND: s1 random, s2 = s - s1
        OR : s1 = s2 = s

        C~   = K * Y^s
        C    = B3^s
        C_i  = g^(s_i)
        C'_i = F(a_i)^(s_i)
        VK   = SHA-256(K)
        CS   = AuthEnc_{KDF(K, u)}(M)

    ---------------------- Decryption ----------------------

    For every attribute the policy needs:

        e(C_i, D_a) / e(D'_a, C'_i) = e(g,g)^(r s_i)

    Multiplying over the needed attributes gives A = e(g,g)^(r s) for
    either connector, and

        K = C~ * A / e(C, D)

    since e(C, D) = e(g,g)^((alpha + r) s). VK is checked before the
    payload is touched, so a key that does not fit fails explicitly
    instead of yielding garbage.
    """

    def __init__(self, group_name=DEFAULT_GROUP):
        self.ctx = GroupContext(group_name)
        self.group = self.ctx.group

    # ============================================================
    # Setup
    # ============================================================
    def setup(self):
        """
        Setup() -> (mpk, msk)

        Pure: the one-setup-per-authority rule is enforced by
        Authority, not here.
        """
        ctx = self.ctx
        g = ctx.random_generator()
        alpha, beta1, beta2, beta3, theta = [ctx.random_scalar() for _ in range(5)]

        mpk = MasterPublicKey(
            g=g,
            B1=g ** beta1,
            B2=g ** beta2,
            B3=g ** beta3,
            Y=ctx.pair(g, g) ** alpha,
        )
        msk = MasterSecretKey(alpha=alpha, beta1=beta1, beta2=beta2, beta3=beta3, theta=theta)
        logger.debug("generated master key pair over %s", ctx.name)
        return mpk, msk

    # ============================================================
    # KeyGen
    # ============================================================
    def keygen(self, mpk, msk, attributes, user_id):
        """
        KeyGen(MPK, MSK, S, u) -> SK

        attributes is a single token (OR-key) or a pair of tokens
        (AND-key). The pair is stored sorted, so (a, b) and (b, a)
        name the same key.
        """
        check_public_key(mpk)
        check_master_key(msk)
        check_user_id(user_id)
        attrs = normalize_attributes(attributes)
        kind = AND if len(attrs) == 2 else OR

        ctx = self.ctx
        g = mpk.g
        r = ctx.hash_to_ZR(KEY_R_TAG, msk.theta, user_id, kind.value, *attrs)
        D = g ** ((msk.alpha + r) / msk.beta3)

        Dj, Djp = {}, {}
        for attr in attrs:
            r_a = ctx.hash_to_ZR(KEY_RJ_TAG, msk.theta, user_id, kind.value, *attrs, attr)
            x_a = ctx.attribute_exponent(user_id, attr)
            # D_a = g^r * F(a)^(r_a), folded into a single exponentiation
            Dj[attr] = g ** (r + (msk.beta1 + msk.beta2 * x_a) * r_a)
            Djp[attr] = g ** r_a

        return SecretKey(user_id=user_id, kind=kind, attributes=attrs, D=D, Dj=Dj, Djp=Djp)

    # ============================================================
    # Encrypt
    # ============================================================
    def _attribute_base(self, mpk, user_id, attr):
        # F(a) = B1 * B2^(x_a)
        return mpk.B1 * (mpk.B2 ** self.ctx.attribute_exponent(user_id, attr))

    def encrypt(self, mpk, message, policy, user_id):
        """
        Encrypt(MPK, M, policy, u) -> CT

        message is bytes; policy is a Policy over two attributes of u.
        """
        check_public_key(mpk)
        check_user_id(user_id)
        if not isinstance(policy, Policy):
            raise MalformedInput("expected a Policy")
        if not isinstance(message, bytes):
            raise MalformedInput("message must be bytes")

        ctx = self.ctx
        g = mpk.g
        s = ctx.random_scalar()
        K = ctx.random_gt()

        if policy.connector == AND:
            s1 = ctx.random_scalar()
            shares = (s1, s - s1)
        else:
            shares = (s, s)

        Cy, Cyp = [], []
        for attr, s_i in zip(policy.attributes, shares):
            Cy.append(g ** s_i)
            Cyp.append(self._attribute_base(mpk, user_id, attr) ** s_i)

        sym = AuthenticatedCryptoAbstraction(kdf(self.group, K, user_id))
        CS = json.dumps(sym.encrypt(message))

        ct = Ciphertext(
            user_id=user_id,
            policy=policy,
            C_tilde=K * (mpk.Y ** s),
            C=mpk.B3 ** s,
            Cy=tuple(Cy),
            Cyp=tuple(Cyp),
            VK=key_check(self.group, K),
            CS=CS,
        )
        logger.debug("encrypted %d bytes under %s", len(message), policy)
        return ct

    def encrypt_multi(self, mpk, messages, policies, user_id):
        """
        EncryptMulti(MPK, (m1, m2), (p1, p2), u) -> MCT

        Each slot is a full, independent encryption: fresh s and K
        per slot, so nothing learned about one slot helps with the other.
        """
        messages, policies = tuple(messages), tuple(policies)
        if len(messages) != 2 or len(policies) != 2:
            raise MalformedInput("a multi-ciphertext carries exactly two messages and two policies")
        slots = tuple(self.encrypt(mpk, m, p, user_id) for m, p in zip(messages, policies))
        return MultiCiphertext(slots=slots)

    # ============================================================
    # Decrypt
    # ============================================================
    @staticmethod
    def _needed_attributes(policy, sk):
        """Policy positions the key has to open, or None if it cannot."""
        held = set(sk.attributes)
        positions = [i for i, a in enumerate(policy.attributes) if a in held]
        if policy.connector == AND:
            return positions if len(positions) == 2 else None
        return positions[:1] or None

    def _attribute_factor(self, ct, sk, positions):
        """
        A = prod e(C_i, D_a) / e(D'_a, C'_i) = e(g,g)^(r s)

        Only equals e(g,g)^(r s) when the key's identity matches the
        identity the ciphertext components were built for.
        """
        ctx = self.ctx
        A = ctx.gt_identity()
        for i in positions:
            attr = ct.policy.attributes[i]
            A *= ctx.pair(ct.Cy[i], sk.Dj[attr]) / ctx.pair(sk.Djp[attr], ct.Cyp[i])
        return A

    def _open(self, ct, sk):
        positions = self._needed_attributes(ct.policy, sk)
        if positions is None:
            raise PolicyNotSatisfied("key does not satisfy the ciphertext policy")

        ctx = self.ctx
        A = self._attribute_factor(ct, sk, positions)
        K = ct.C_tilde * A / ctx.pair(ct.C, sk.D)

        if key_check(self.group, K) != ct.VK:
            raise PolicyNotSatisfied("key does not satisfy the ciphertext policy")

        sym = AuthenticatedCryptoAbstraction(kdf(self.group, K, ct.user_id))
        payload = parse_payload(ct.CS)
        try:
            return sym.decrypt(payload)
        except ValueError as e:
            # MAC mismatch
            raise PolicyNotSatisfied("ciphertext payload rejected") from e

    def decrypt(self, ct, sk):
        """
        Decrypt(CT, SK) -> M

        Raises PolicyNotSatisfied when the key's attributes do not
        cover the policy or the key belongs to another identity.
        """
        check_ciphertext(ct)
        check_secret_key(sk)
        try:
            message = self._open(ct, sk)
        except PolicyNotSatisfied:
            logger.debug("decryption refused for policy %s", ct.policy)
            raise
        logger.debug("decrypted ciphertext under %s", ct.policy)
        return message

    def decrypt_multi(self, mct, sk):
        """
        DecryptMulti(MCT, SK) -> (M1 | None, M2 | None)

        Slots are opened independently with the same key; a slot the
        key cannot open comes back as None.
        """
        check_multi_ciphertext(mct)
        check_secret_key(sk)
        out = []
        for ct in mct.slots:
            try:
                out.append(self.decrypt(ct, sk))
            except PolicyNotSatisfied:
                out.append(None)
        return tuple(out)

    # ============================================================
    # Byte encoding
    # ============================================================
    def serialize(self, obj):
        return encoding.dumps(self.ctx, obj)

    def deserialize(self, data):
        return encoding.loads(self.ctx, data)
