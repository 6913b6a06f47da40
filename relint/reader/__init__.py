from relint.reader.parser import read_toplevel_forms, read_from_string
from relint.reader.positions import resolve_position, string_position

__all__ = ["read_toplevel_forms", "read_from_string", "resolve_position", "string_position"]
