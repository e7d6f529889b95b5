"""
Funge VM - Integer arithmetic

Operand order for every binary instruction:
    a = pop()   (top of stack, the right-hand operand)
    b = pop()   (second, the left-hand operand)
    push(b OP a)

Division and modulo round toward negative infinity, so the sign of a
remainder follows the divisor:
    floor_div(-7, 2) == -4      floor_mod(-7, 2) == 1
    floor_div(7, -2) == -4      floor_mod(7, -2) == -1

A zero divisor yields 0 for both. Funge-98 defines it that way, and it
keeps every instruction total.

Cells are unbounded Python ints; nothing here wraps to a machine word.
"""


def add(b: int, a: int) -> int:
    return b + a


def sub(b: int, a: int) -> int:
    return b - a


def mul(b: int, a: int) -> int:
    return b * a


def floor_div(b: int, a: int) -> int:
    """b / a rounded toward negative infinity; 0 when a == 0."""
    if a == 0:
        return 0
    return b // a


def floor_mod(b: int, a: int) -> int:
    """b mod a with the sign of a; 0 when a == 0."""
    if a == 0:
        return 0
    return b % a


def greater(b: int, a: int) -> int:
    """`` ` `` - 1 if b > a else 0."""
    return 1 if b > a else 0


def logical_not(value: int) -> int:
    return 1 if value == 0 else 0


# Binary instruction character -> function(b, a)
BINARY_OPS = {
    '+': add,
    '-': sub,
    '*': mul,
    '/': floor_div,
    '%': floor_mod,
    '`': greater,
}
