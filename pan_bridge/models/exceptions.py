class PanBridgeException(Exception):
    pass


class RunCommandError(PanBridgeException):
    """Raised when an external command fails or cannot be run"""

    def __init__(self, error_msg: str, return_code: int):
        super().__init__(error_msg)
        self.error_msg = error_msg
        self.return_code = return_code

    def __str__(self) -> str:
        return f"{self.error_msg.strip()} (return code {self.return_code})"


class InvalidAddressError(PanBridgeException, ValueError):
    """Raised for a malformed IPv4 address/prefix string"""


class SubnetExhaustedError(InvalidAddressError):
    """Raised when no further 192.168.x.0 subnet can be handed out"""
