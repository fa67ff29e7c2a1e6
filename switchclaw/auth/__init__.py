"""Command authorization."""

from switchclaw.auth.evaluator import AuthContext, AuthorizationEvaluator, normalize_address, sender_identity

__all__ = ["AuthContext", "AuthorizationEvaluator", "normalize_address", "sender_identity"]
