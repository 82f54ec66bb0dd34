"""Bearer token validation for the MCP endpoint."""

import hmac
import re
from typing import List, Optional, Set


class BearerTokenValidator:
    """Validates bearer tokens for MCP authentication."""

    def __init__(self, tokens: List[str]):
        """Initialize validator with list of valid tokens.

        Args:
            tokens: List of valid bearer token strings
        """
        self.valid_tokens: Set[str] = {t for t in tokens if t}

    def validate_token(self, token: Optional[str]) -> bool:
        """Validate a bearer token.

        Args:
            token: Token string or full Authorization header value

        Returns:
            True if token is valid, False otherwise
        """
        if not token:
            return False

        # Authorization header values carry a 'Bearer ' prefix (case-insensitive)
        clean_token = re.sub(r'^Bearer\s+', '', token.strip(), flags=re.IGNORECASE)
        if not clean_token:
            return False

        return any(hmac.compare_digest(clean_token, valid) for valid in self.valid_tokens)

    def add_token(self, token: str) -> None:
        self.valid_tokens.add(token)

    def remove_token(self, token: str) -> None:
        self.valid_tokens.discard(token)
