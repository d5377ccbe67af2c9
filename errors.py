import argparse


class LidarViewError(Exception):
    pass


class CLIError(LidarViewError, argparse.ArgumentTypeError):
    pass


class InputFileError(LidarViewError, OSError):
    pass


class MalformedInputError(LidarViewError, ValueError):
    pass


class EmptyInputError(LidarViewError):
    pass


class EmptyRasterError(LidarViewError):
    pass


class InternalInvariantError(LidarViewError):
    """Programmer error, e.g. an unknown classification code or enum value."""
