"""Regex-based evidence extraction.

Everything the analyzers "understand" about Move source goes through
TextEvidence. Nothing here parses expressions or resolves identifiers; each
question is answered by matching regular expressions against raw text.
"""
from __future__ import annotations

import re

PUBLIC_FUN = re.compile(r"public\s+fun\s+(\w+)")
ADMIN_FUN = re.compile(r"public\s+fun\s+(admin_|owner_|set_|update_|change_)")

# Substrings of function names that are presumed read-only or constructors
_SAFE_NAME_PARTS = ("initialize", "create", "new", "get_", "is_", "has_", "view_", "read_")

_ACCESS_CONTROL = [
    re.compile(r"_:\s*&\w*Cap\w*|\w+_cap:\s*&\w+"),
    re.compile(r"assert!\s*\([^)]*ctx\.sender\(\)\s*==\s*[^)]*\.owner"),
    re.compile(r"assert!\s*\([^)]*\.owner\s*==\s*[^)]*ctx\.sender\(\)"),
    re.compile(r"assert!\s*\([^)]*\.owner\s*==\s*[^)]*\)"),
    re.compile(r"assert!\s*\([^)]*(?:admin|authority|owner)", re.IGNORECASE),
    re.compile(r"has_permission|is_authorized|check_auth"),
    re.compile(r"whitelist|authorized_users"),
    re.compile(r"has_role|check_role|is_admin"),
]

_OWNER_STRUCT = re.compile(r"struct\s+\w+\s+has[^{]*\{[^}]*owner\s*:\s*address")
_OWNER_ASSERT = re.compile(r"assert!\s*\([^)]*\.owner\s*==|assert!\s*\([^)]*ctx\.sender\(\)\s*==")

_SENSITIVE_OPS = ("transfer", "coin::", "balance", "withdraw", "mint", "burn", "destroy", "split", "join")
_FINANCIAL_NAME = re.compile(r"withdraw|transfer|mint|burn|deposit|swap|exchange", re.IGNORECASE)

_ADMIN_VOCAB = re.compile(r"admin|owner|cap", re.IGNORECASE)
_SENDER_EQ = re.compile(r"ctx\.sender\(\)\s*==")
_PERMISSION_CALL = re.compile(r"has_permission|is_authorized|check_auth")
_CAP_PARAM = re.compile(r"_:\s*&\w*Cap\w*")

_VALIDATION = re.compile(r"assert!|require!|abort_if")

EXTERNAL_CALLS = ("transfer::", "event::", "coin::from_balance")
# `==` is a comparison, not a store
_FIELD_ASSIGN = re.compile(r"\w+\.\w+\s*=(?!=)")

_INVOCATION = re.compile(r"call|invoke|execute")
_EXTERNAL = re.compile(r"external|cross")
_GUARD = re.compile(r"reentrancy|guard|lock|mutex")


class TextEvidence:
    """Answers evidence questions about raw Move source text."""

    def function_name(self, line: str) -> str | None:
        m = PUBLIC_FUN.search(line)
        return m.group(1) if m else None

    def is_presumed_safe_name(self, name: str) -> bool:
        lowered = name.lower()
        return any(part in lowered for part in _SAFE_NAME_PARTS)

    def has_access_control(self, body: str, file_text: str) -> bool:
        if any(p.search(body) for p in _ACCESS_CONTROL):
            return True
        # Owner-field structs make an owner comparison in the body sufficient
        return bool(_OWNER_STRUCT.search(file_text) and _OWNER_ASSERT.search(body))

    def has_sensitive_operation(self, body: str) -> bool:
        return any(op in body for op in _SENSITIVE_OPS)

    def is_privileged_name(self, name: str) -> bool:
        """Financial actions, or names that literally mention admin/owner."""
        return bool(_FINANCIAL_NAME.search(name)) or "admin" in name or "owner" in name

    def is_admin_declaration(self, line: str) -> bool:
        return ADMIN_FUN.search(line) is not None

    def has_admin_protection(self, body: str) -> bool:
        return (
            (bool(_ADMIN_VOCAB.search(body)) and "assert!" in body)
            or bool(_SENDER_EQ.search(body))
            or bool(_PERMISSION_CALL.search(body))
            or bool(_CAP_PARAM.search(body))
        )

    def has_validation(self, lines: list[str]) -> bool:
        return any(_VALIDATION.search(line) for line in lines)

    def has_external_call(self, line: str) -> bool:
        return any(call in line for call in EXTERNAL_CALLS)

    def is_field_assignment(self, line: str) -> bool:
        return _FIELD_ASSIGN.search(line) is not None

    def is_cross_module_invocation(self, line: str) -> bool:
        return bool(_INVOCATION.search(line) and _EXTERNAL.search(line))

    def has_guard(self, lines: list[str]) -> bool:
        return any(_GUARD.search(line) for line in lines)
