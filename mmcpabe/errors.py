# ============================================================
# Error taxonomy for the multi-message CP-ABE scheme
# ============================================================


class CPABEError(Exception):
    """Base class for every error raised by mmcpabe."""


class PolicyNotSatisfied(CPABEError):
    """
    The key cannot open the ciphertext.

    Raised both when the key's attributes do not cover the policy and
    when key and ciphertext belong to different identities. The two
    cases are not told apart, so a holder learns nothing about whose
    ciphertext it is looking at.
    """


class MalformedInput(CPABEError):
    """Structurally invalid key, ciphertext, policy or encoding."""


class DoubleSetup(CPABEError):
    """Setup was requested twice for the same authority."""


class UnknownAttribute(CPABEError):
    """Key requested for an attribute the authority never issued to that identity."""


class DuplicateIdentity(CPABEError):
    """An identity was registered twice."""
