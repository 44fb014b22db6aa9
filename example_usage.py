import logging
import sys

from mmcpabe import AND, OR, Authority, Policy, PolicyNotSatisfied


def main():
    # --- 1. System setup ---
    authority = Authority()
    mpk = authority.setup()
    scheme = authority.scheme
    print("Public params:", mpk, "\n")

    # --- 2. Register a user: one identity, two attribute tokens ---
    uid, (att1, att2) = authority.register_user()
    print("Identity  :", uid)
    print("Attributes:", att1, att2, "\n")

    # --- 3. Keys: OR-key for att1 only, AND-key for both ---
    sk_att1 = authority.keygen(att1, uid)
    sk_both = authority.keygen((att1, att2), uid)

    # --- 4. One bundle, two messages, two policies ---
    summary = b"Patient summary: stable"
    record = b"Patient record: MRI results..."
    policies = (Policy((att1, att2), OR), Policy((att1, att2), AND))
    mct = scheme.encrypt_multi(mpk, (summary, record), policies, uid)
    print("Bundle policies:", [str(p) for p in policies], "\n")

    # --- 5. Partial decryption ---
    print("=== att1-only key ===")
    print(scheme.decrypt_multi(mct, sk_att1), "\n")

    print("=== att1 + att2 key ===")
    print(scheme.decrypt_multi(mct, sk_both), "\n")

    # --- 6. Another user's key never opens this bundle ---
    other_uid, (o1, o2) = authority.register_user()
    sk_other = authority.keygen((o1, o2), other_uid)
    print("=== other user's key ===")
    try:
        scheme.decrypt(mct.slots[0], sk_other)
        print("[BUG] other user decrypted the bundle\n")
    except PolicyNotSatisfied as e:
        print("[OK] refused:", e, "\n")

    # --- 7. Keys and ciphertexts travel as bytes ---
    data = scheme.serialize(mct)
    print("Encoded bundle: %d bytes" % len(data))
    assert scheme.decrypt_multi(scheme.deserialize(data), sk_att1) == (summary, None)


if __name__ == "__main__":
    logging.basicConfig(stream=sys.stderr, level=logging.INFO)
    main()
