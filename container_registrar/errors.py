"""
Exceptions raised by the registrar workflows.

Everything derives from RegistrarError so the CLI can report any workflow
failure with a readable message and exit 1.
"""


class RegistrarError(Exception):
    """Base class for every expected workflow failure."""


class ArgumentError(RegistrarError):
    """Bad or missing command line input. Raised before any network access."""


class ConfigError(RegistrarError):
    pass


class UnknownNetwork(ConfigError):
    def __init__(self, name, available):
        self.name = name
        self.available = list(available)
        super().__init__(
            f"Unknown network: {name}. Available networks: {', '.join(self.available)}"
        )


class MissingCredential(ConfigError):
    pass


class InvalidMnemonic(ConfigError):
    pass


class ChainConnectionError(RegistrarError):
    """The node could not be reached or broke the subscription protocol."""


class TransformError(RegistrarError):
    pass


class MalformedInput(TransformError):
    pass


class DispatchError(RegistrarError):
    """
    The chain rejected the submitted call.

    `error` is the decoded form: a ModuleError when the metadata knows the
    pallet error, a GenericError otherwise.
    """

    def __init__(self, error):
        self.error = error
        super().__init__(str(error))


class EventNotFound(RegistrarError):
    pass


class BlockNotFound(RegistrarError):
    def __init__(self, block_hash):
        self.block_hash = block_hash
        super().__init__(f"Block {block_hash} not found")
