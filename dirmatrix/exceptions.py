class DirMatrixError(Exception):
    # base exception for all application-specific errors.
    pass

class ConfigError(DirMatrixError):
    # errors related to configuration.
    pass

class NotFoundError(DirMatrixError):
    # the root path to scan does not exist.
    pass

class DiscoveryError(DirMatrixError):
    # errors while listing candidate directories.
    pass

class MetadataError(DirMatrixError):
    # errors reading or parsing a per-directory metadata file.
    pass

class ChangeDetectionError(DirMatrixError):
    # errors from the remote change-listing api.
    pass

class GitError(DirMatrixError):
    # errors from git commands.
    pass

class OutputError(DirMatrixError):
    # errors during output operations.
    pass
