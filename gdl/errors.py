"""Exceptions raised by gdl."""


class GdlError(Exception):
    """Base class for every error gdl raises on purpose."""


class ConfigurationError(GdlError):
    """Options that cannot be used together, or a required option is missing."""


class TaxonomyError(GdlError):
    pass


class TaxonNotFound(TaxonomyError):
    def __init__(self, name):
        super().__init__(f"No tax ID found for name {name!r}")
        self.name = name


class AmbiguousName(TaxonomyError):
    def __init__(self, name, candidates):
        self.name = name
        self.candidates = sorted(candidates)
        super().__init__(
            f"Name {name!r} is ambiguous, matching tax IDs: {', '.join(self.candidates)}"
        )


class TaxonomyLoadError(TaxonomyError):
    pass


class CatalogParseError(GdlError):
    def __init__(self, path, line_number, message):
        super().__init__(f"{path}, line {line_number}: {message}")
        self.path = path
        self.line_number = line_number


class MalformedRemotePath(GdlError):
    def __init__(self, remote_path):
        super().__init__(f"Failed to get the filename from FTP path {remote_path!r}")
        self.remote_path = remote_path


class CacheError(GdlError):
    """Downloading or unpacking a cached input file failed."""
