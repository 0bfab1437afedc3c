

class RepoMirrorException(Exception):
    '''Base class for everything the repo mirror raises on purpose'''
    pass


class UsageError(RepoMirrorException):
    '''The command line was not usable (missing source or dest)'''
    pass


class ConfigException(RepoMirrorException):
    '''There was an error in pulling in the config information'''
    pass


class PolicyRejection(RepoMirrorException):
    """No "latest" snapshot exists and creating a new one was not allowed"""
    pass


class ProbeError(RepoMirrorException):
    """Could not tell whether the "latest" pointer exists"""
    pass


class TransferFailure(RepoMirrorException):
    """rsync did not finish successfully"""

    def __init__(self, message: str, returncode: int | None = None, cmd: list[str] | None = None):
        super().__init__(message)
        self.returncode = returncode
        self.cmd = cmd


class TransferInterrupted(TransferFailure):
    """rsync was cancelled by an interrupt before it finished"""
    pass


class PointerUpdateFailure(RepoMirrorException):
    """The snapshot was written but the "latest" symlink could not be replaced"""
    pass
