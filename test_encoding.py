import json
from dataclasses import replace
import unittest

from mmcpabe import AND, OR, Connector, MalformedInput, MultiMessageCPABE, Policy, PolicyNotSatisfied
from mmcpabe.keys import Ciphertext, MultiCiphertext


class TestEncoding(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.scheme = MultiMessageCPABE()
        cls.mpk, cls.msk = cls.scheme.setup()
        cls.uid = "anonA"
        cls.policy = Policy(("Doctor", "Cardiology"), AND)
        cls.sk = cls.scheme.keygen(cls.mpk, cls.msk, ("Doctor", "Cardiology"), cls.uid)
        cls.ct = cls.scheme.encrypt(cls.mpk, b"ECG", cls.policy, cls.uid)

    def roundtrip(self, value):
        data = self.scheme.serialize(value)
        self.assertIsInstance(data, bytes)
        decoded = self.scheme.deserialize(data)
        self.assertEqual(decoded, value)
        self.assertEqual(self.scheme.serialize(decoded), data)
        return decoded

    def test_all_values_roundtrip(self):
        mct = self.scheme.encrypt_multi(self.mpk, (b"one", b"two"),
                                        (Policy(("Doctor", "Cardiology"), OR), self.policy), self.uid)
        for value in (self.mpk, self.msk, self.sk, self.ct, mct):
            self.roundtrip(value)

    def test_decoded_values_still_work(self):
        ct = self.roundtrip(self.ct)
        sk = self.roundtrip(self.sk)
        mpk = self.roundtrip(self.mpk)
        self.assertEqual(self.scheme.decrypt(ct, sk), b"ECG")

        ct2 = self.scheme.encrypt(mpk, b"again", self.policy, self.uid)
        self.assertEqual(self.scheme.decrypt(ct2, sk), b"again")

    def doc(self, value):
        return json.loads(self.scheme.serialize(value).decode("utf-8"))

    def load_doc(self, doc):
        return self.scheme.deserialize(json.dumps(doc).encode("utf-8"))

    def test_garbage_rejected(self):
        for data in (b"", b"not json", b"[1, 2]", b"\xff\xfe", "a string"):
            with self.assertRaises(MalformedInput):
                self.scheme.deserialize(data)

    def test_unknown_type_rejected(self):
        doc = self.doc(self.ct)
        doc["type"] = "certificate"
        with self.assertRaises(MalformedInput):
            self.load_doc(doc)

    def test_other_group_rejected(self):
        doc = self.doc(self.ct)
        doc["group"] = "MNT224"
        with self.assertRaises(MalformedInput):
            self.load_doc(doc)

    def test_wrong_element_type_rejected(self):
        # a G1 element where the GT blinding value belongs
        doc = self.doc(self.ct)
        doc["body"]["C_tilde"] = doc["body"]["C"]
        with self.assertRaises(MalformedInput):
            self.load_doc(doc)

    def test_wrong_arity_rejected(self):
        doc = self.doc(self.ct)
        doc["body"]["Cy"] = doc["body"]["Cy"][:1]
        with self.assertRaises(MalformedInput):
            self.load_doc(doc)

    def test_missing_key_component_rejected(self):
        doc = self.doc(self.sk)
        del doc["body"]["Dj"]["Doctor"]
        with self.assertRaises(MalformedInput):
            self.load_doc(doc)

    def test_bad_policy_rejected(self):
        doc = self.doc(self.ct)
        doc["body"]["policy"]["connector"] = "XOR"
        with self.assertRaises(MalformedInput):
            self.load_doc(doc)
        doc["body"]["policy"] = {"attributes": ["Doctor", "Doctor"], "connector": "AND"}
        with self.assertRaises(MalformedInput):
            self.load_doc(doc)

    def test_tampered_payload_refused(self):
        doc = self.doc(self.ct)
        other = self.doc(self.scheme.encrypt(self.mpk, b"other", self.policy, self.uid))
        doc["body"]["CS"] = other["body"]["CS"]
        with self.assertRaises(PolicyNotSatisfied):
            self.scheme.decrypt(self.load_doc(doc), self.sk)

    def test_unstructured_payload_rejected(self):
        for CS in ("not json", '{"msg": "x"}', "[1, 2]", '{"alg": "x", "msg": 1, "digest": "y"}'):
            broken = replace(self.ct, CS=CS)
            with self.assertRaises(MalformedInput):
                self.scheme.decrypt(broken, self.sk)

            mct = MultiCiphertext(slots=(self.ct, broken))
            with self.assertRaises(MalformedInput):
                self.scheme.decrypt_multi(mct, self.sk)

            doc = self.doc(self.ct)
            doc["body"]["CS"] = CS
            with self.assertRaises(MalformedInput):
                self.load_doc(doc)

    def test_policy_relabel_does_not_help(self):
        # claiming an OR policy on an AND ciphertext gives garbage, not the message
        relabelled = Ciphertext(
            user_id=self.ct.user_id,
            policy=Policy(self.ct.policy.attributes, Connector.OR),
            C_tilde=self.ct.C_tilde, C=self.ct.C, Cy=self.ct.Cy, Cyp=self.ct.Cyp,
            VK=self.ct.VK, CS=self.ct.CS,
        )
        sk = self.scheme.keygen(self.mpk, self.msk, "Doctor", self.uid)
        with self.assertRaises(PolicyNotSatisfied):
            self.scheme.decrypt(relabelled, sk)


class TestPolicy(unittest.TestCase):
    def test_equality(self):
        self.assertEqual(Policy(("a", "b"), AND), Policy.all_of("a", "b"))
        self.assertEqual(Policy(["a", "b"], "OR"), Policy.any_of("a", "b"))
        self.assertNotEqual(Policy(("a", "b"), AND), Policy(("a", "b"), OR))
        self.assertNotEqual(Policy(("a", "b"), AND), Policy(("b", "a"), AND))

    def test_invalid_policies(self):
        for attrs, connector in ((("a",), AND), (("a", "b", "c"), OR), (("a", "a"), AND),
                                 (("a", ""), OR), (("a", 3), OR), (("a", "b"), "NAND")):
            with self.assertRaises(MalformedInput):
                Policy(attrs, connector)

    def test_str(self):
        self.assertEqual(str(Policy.all_of("a", "b")), "(a AND b)")


if __name__ == "__main__":
    unittest.main()
