"""Custom exceptions for depfetch."""


class DepfetchError(Exception):
    """Base exception for all depfetch errors."""


class ConfigError(DepfetchError):
    """Raised when a configuration value cannot be interpreted."""


class RootDirectoryError(DepfetchError):
    """Raised when the scan root does not exist or is not a directory."""

    def __init__(self, root: str):
        self.root = root
        super().__init__(f"Directory not found: {root}")


class ManifestReadError(DepfetchError):
    """Raised when a manifest candidate cannot be read at parse time."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read manifest {path}: {reason}")


class LiteralSyntaxError(DepfetchError):
    """Raised when text is outside the restricted object-literal grammar."""

    def __init__(self, message: str, position: int):
        self.position = position
        super().__init__(f"{message} at offset {position}")


class UnsupportedURLError(DepfetchError):
    """Raised when a URL uses a scheme other than http or https."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"unsupported URL scheme: {url}")
