from relint.types.symbol import Symbol
from relint.types.nil import Nil, is_nil
from relint.types.vector import Vector
from relint.types.unknown import UNKNOWN
from relint.types.environment import Environment

__all__ = ["Symbol", "Nil", "is_nil", "Vector", "UNKNOWN", "Environment"]
