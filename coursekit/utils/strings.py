"""UI strings used in exported content."""
from types import MappingProxyType


_STRINGS = {
    'modulename': 'Glossary',
    'concept': 'Concept',
    'definition': 'Definition',
    'alias': 'Alias',
    'aliases': 'Aliases',
    'category': 'Category',
    'invalidid': 'Glossary ID was incorrect',
    'noentry': 'No entry found',
    'unexpected_format_class': 'Unexpected format class for this export',
}

STRINGS = MappingProxyType(_STRINGS)


def get_string(key: str) -> str:
    """Look up a UI string; unknown keys render as ``[[key]]``."""
    return STRINGS.get(key, f"[[{key}]]")
