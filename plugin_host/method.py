
# standard imports
import sys
import typing

# third-part imports

# local imports


# Methods with this prefix are sent by the editor itself (eg. buffer attach events)
# They never address a plugin, so the dispatcher drops them before parsing
RESERVED_PREFIX = 'nvim_'

WINDOWS_PLATFORM = 'win32'


class CompoundMethod(typing.NamedTuple):
    """
    Decoded form of a `<filename>:<call_type>:<procedure...>` method string
    """
    filename: str
    call_type: str
    procedure_name: str


def is_reserved(method: str) -> bool:
    return method.startswith(RESERVED_PREFIX)


def correct_drive_path(tokens: typing.List[str], platform: str) -> typing.List[str]:
    """
    Rejoin a windows drive letter with the rest of its path

    Windows-style absolute paths are formatted as `C:/path/to/file` (the editor uses forward slashes
    to avoid escaping backslashes), so splitting the method on ':' produces ['C', '/path/to/file', ...].
    This returns ['C:/path/to/file', ...] instead. Other platforms are returned unchanged
    """
    if platform != WINDOWS_PLATFORM:
        return tokens

    if len(tokens) < 2 or len(tokens[0]) != 1:
        return tokens

    return ["{}:{}".format(tokens[0], tokens[1])] + tokens[2:]


def parse_method(method: str, platform: typing.Optional[str] = None) -> CompoundMethod:
    """
    Split a compound method into the plugin filename, the call type, and the procedure name

    Any string parses: missing tokens come back empty and fail later on plugin resolution
    Procedure names may contain ':' (eg. autocmd patterns), those get rejoined with a single space
    """
    tokens = correct_drive_path(method.split(':'), platform or sys.platform)

    filename = tokens[0]
    call_type = tokens[1] if len(tokens) > 1 else ''
    return CompoundMethod(filename, call_type, ' '.join(tokens[2:]))
