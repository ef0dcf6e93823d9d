"""Source locators: URIs that optionally carry embedded access credentials."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import SplitResult, quote, unquote, urlsplit, urlunsplit

from patchreview.errors import ConfigurationError

REDACTED = "***"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Raw credential inputs; an empty string means the input was not supplied."""

    token: str = ""
    username: str = ""
    password: str = ""


@dataclass(slots=True, repr=False)
class SourceLocator:
    """A URI whose credential, once set, lives only in the authority component."""

    uri: str

    @classmethod
    def from_credentials(cls, uri: str, credentials: Credentials) -> SourceLocator:
        locator = cls(uri)
        if credentials.token:
            locator.authorize_with_token(credentials.token)
            return locator
        if not credentials.username and not credentials.password:
            return locator
        if credentials.username and not credentials.password:
            locator.authorize_with_username(credentials.username)
            return locator
        if credentials.username and credentials.password:
            locator.authorize_with_username_password(credentials.username, credentials.password)
            return locator
        raise ConfigurationError(
            "Cannot specify password without username.",
            hint="Provide a username alongside the password, or use a token instead.",
            context={"operation": "authorize", "uri": locator.redacted},
        )

    def authorize_with_token(self, token: str) -> None:
        self._authorize_with_userinfo(quote(token, safe=""))

    def authorize_with_username(self, username: str) -> None:
        self._authorize_with_userinfo(quote(username, safe=""))

    def authorize_with_username_password(self, username: str, password: str) -> None:
        self._authorize_with_userinfo(f"{quote(username, safe='')}:{quote(password, safe='')}")

    @property
    def scheme(self) -> str:
        return self._parts().scheme.lower()

    @property
    def path(self) -> str:
        return unquote(self._parts().path)

    @property
    def basename(self) -> str | None:
        name = PurePosixPath(self.path).name
        return name or None

    @property
    def has_credentials(self) -> bool:
        return "@" in self._parts().netloc

    @property
    def redacted(self) -> str:
        parts = self._parts()
        if "@" not in parts.netloc:
            return self.uri
        host = parts.netloc.rpartition("@")[2]
        return urlunsplit(parts._replace(netloc=f"{REDACTED}@{host}"))

    def redact(self, text: str) -> str:
        """Mask every occurrence of the embedded credential inside ``text``."""
        for secret in self._secrets():
            text = text.replace(secret, REDACTED)
        return text

    def __repr__(self) -> str:
        return f"SourceLocator({self.redacted!r})"

    def _authorize_with_userinfo(self, userinfo: str) -> None:
        parts = self._parts()
        host = parts.netloc.rpartition("@")[2]
        self.uri = urlunsplit(parts._replace(netloc=f"{userinfo}@{host}"))

    def _secrets(self) -> list[str]:
        parts = self._parts()
        if "@" not in parts.netloc:
            return []
        userinfo = parts.netloc.rpartition("@")[0]
        username, _, password = userinfo.partition(":")
        if password:
            candidates = [userinfo, password, unquote(password)]
        else:
            # Token auth stores the token in the username slot.
            candidates = [userinfo, unquote(username)]
        return sorted({secret for secret in candidates if secret}, key=len, reverse=True)

    def _parts(self) -> SplitResult:
        return urlsplit(self.uri)


__all__ = ["Credentials", "REDACTED", "SourceLocator"]
