class PatternError(ValueError):
    """Raised when a path pattern does not hold exactly one placeholder."""


def parse_pattern(pattern: str) -> tuple[str, str, str]:
    """
    Split a path pattern around its single `{name}` placeholder.

    parse_pattern('/prefix/{name}.suffix') == ('/prefix/', '{name}', '.suffix')

    :return: (prefix, placeholder, suffix)
    :raises PatternError: empty pattern, no placeholder, unterminated or empty
        placeholder, or more than one placeholder.
    """
    if not pattern:
        raise PatternError('empty pattern')

    start = pattern.find('{')
    if start < 0:
        raise PatternError(f'no placeholder in pattern {pattern!r}')

    end = pattern.find('}', start + 1)
    if end < 0 or '{' in pattern[start + 1:end]:
        raise PatternError(f'unterminated placeholder in pattern {pattern!r}')
    if end == start + 1:
        raise PatternError(f'empty placeholder in pattern {pattern!r}')

    suffix = pattern[end + 1:]
    if '{' in suffix:
        raise PatternError(f'more than one placeholder in pattern {pattern!r}')

    return pattern[:start], pattern[start:end + 1], suffix
