from __future__ import annotations


class LambdaKitError(RuntimeError):
    pass


class InvalidInputError(LambdaKitError):
    pass


class InvalidProjectNameError(InvalidInputError):
    pass


class ReservedStageError(InvalidInputError):
    pass


class UnsupportedRegionError(InvalidInputError):
    pass


class UnknownRuntimeError(InvalidInputError):
    pass


class MissingCredentialsError(LambdaKitError):
    pass


class AwsServiceError(LambdaKitError):
    pass


class RemoteConflictError(AwsServiceError):
    """A bucket or stack already exists in a state this tool cannot reuse."""


class StackCreationFailedError(RemoteConflictError):
    pass


class ProvisioningTimeoutError(AwsServiceError):
    pass


class FilesystemError(LambdaKitError):
    pass


class PackagingError(LambdaKitError):
    pass


class IncludePathNotFoundError(PackagingError):
    pass


class InvalidHandlerError(PackagingError):
    pass


class DuplicateArtifactError(PackagingError):
    pass


class RuntimeHookNotImplementedError(LambdaKitError, NotImplementedError):
    pass


class RuntimeCommandError(LambdaKitError):
    pass
