class VolumeCtlException(Exception):
    """Base of every failure a command can end with.

    ``command`` is filled in by the execution wrapper with the resolved
    command instance, so renderers can report the command path and whatever
    parameters were already built.
    """

    def __init__(self, message, command=None):
        super().__init__(message)
        self.message = message
        self.command = command


class UsageError(VolumeCtlException):

    def __init__(self, message, prog=None, usage=None, help_text=None, command=None):
        super().__init__(message, command=command)
        self.prog = prog
        self.usage = usage
        self.help_text = help_text


class DiscoveryFailure(VolumeCtlException):
    pass


class TransportFailure(VolumeCtlException):

    def __init__(self, message, status=None, body=None, command=None):
        super().__init__(message, command=command)
        self.status = status
        self.body = body


class DecodeFailure(TransportFailure):
    pass
