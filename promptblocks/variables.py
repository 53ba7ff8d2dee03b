"""
Catalog of documented template variables and filters.

Authoring tools show this list so prompt writers can discover what a
render context usually carries and which filters exist. The catalog is
documentation only; rendering never consults it.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class VariableGroup(str, Enum):
    CHARACTER = "character"
    USER = "user"
    CAST = "cast"
    SESSION = "session"
    OTHERS = "others"
    FILTERS = "filters"


@dataclass(frozen=True)
class Variable:
    """A documented variable or filter.

    Attributes:
        group: Catalog section the entry belongs to.
        variable: Dotted variable path or filter name.
        description: What the value holds.
        data_type: Type shown to prompt writers.
        template: Optional snippet demonstrating typical usage.
    """
    group: VariableGroup
    variable: str
    description: str
    data_type: str
    template: Optional[str] = None


def _each(collection: str, item: str, body: str) -> str:
    return f"\n{{% for {item} in {collection} %}}\n  {body}\n{{% endfor %}}\n"


VARIABLES: tuple[Variable, ...] = (
    Variable(VariableGroup.CHARACTER, "char.id",
             "The unique ID of the character currently taking action.", "string"),
    Variable(VariableGroup.CHARACTER, "char.name",
             "The name of the character currently taking action.", "string"),
    Variable(VariableGroup.CHARACTER, "char.description",
             "The description of the character currently taking action.", "string"),
    Variable(VariableGroup.CHARACTER, "char.example_dialog",
             "The example dialog of the character currently taking action.", "string"),
    Variable(VariableGroup.CHARACTER, "char.entries",
             "Retrieved character book entries for the character currently taking action.",
             "string[]", _each("char.entries", "entry", "{{entry}}")),
    Variable(VariableGroup.USER, "user.id",
             "The unique ID of the character controlled by the user.", "string"),
    Variable(VariableGroup.USER, "user.name",
             "The name of the character controlled by the user.", "string"),
    Variable(VariableGroup.USER, "user.description",
             "The description of the character controlled by the user.", "string"),
    Variable(VariableGroup.USER, "user.example_dialog",
             "The example dialog of the character controlled by the user.", "string"),
    Variable(VariableGroup.USER, "user.entries",
             "Retrieved character book entries for the character controlled by the user.",
             "string[]", _each("user.entries", "entry", "{{entry}}")),
    Variable(VariableGroup.CAST, "cast.all",
             "Every character participating in the session.",
             "Character[]", _each("cast.all", "character", "{{character.name}}: {{character.description}}")),
    Variable(VariableGroup.CAST, "cast.active",
             "The character currently taking action, user-controlled or not.", "Character"),
    Variable(VariableGroup.CAST, "cast.inactive",
             "The characters not currently taking action.",
             "Character[]", _each("cast.inactive", "character", "{{character.name}}: {{character.description}}")),
    Variable(VariableGroup.SESSION, "session.char_entries",
             "All retrieved character book entries.",
             "string[]", _each("session.char_entries", "entry", "{{entry}}")),
    Variable(VariableGroup.SESSION, "session.plot_entries",
             "All retrieved plot lorebook entries.",
             "string[]", _each("session.plot_entries", "entry", "{{entry}}")),
    Variable(VariableGroup.SESSION, "session.entries",
             "All retrieved character and plot entries.",
             "string[]", _each("session.entries", "entry", "{{entry}}")),
    Variable(VariableGroup.SESSION, "session.scenario",
             "The scenario of the session.", "string"),
    Variable(VariableGroup.SESSION, "session.duration",
             "Time elapsed since the session was created.",
             "Duration", "\n{{session.duration | duration_to_relative}}\n"),
    Variable(VariableGroup.SESSION, "session.idle_duration",
             "Time elapsed since the last interaction in the session.",
             "Duration", "\n{{session.idle_duration | duration_to_relative}}\n"),
    Variable(VariableGroup.SESSION, "history",
             "Every turn of the session, oldest first.",
             "Turn[]", _each("history", "turn", "{{turn.char_name}}: {{turn.content}}")),
    Variable(VariableGroup.SESSION, "turn.char_id",
             "ID of the character who sent the message. Only available in history blocks.", "string"),
    Variable(VariableGroup.SESSION, "turn.char_name",
             "Name of the character who sent the message. Only available in history blocks.", "string"),
    Variable(VariableGroup.SESSION, "turn.content",
             "Content of the message. Only available in history blocks.", "string"),
    Variable(VariableGroup.OTHERS, "now",
             "The current date and time as an ISO-8601 UTC string.", "Datetime"),
    Variable(VariableGroup.FILTERS, "date_to_relative",
             'Converts a date into a relative phrase such as "2 hours ago".',
             "string", "\n{{'2025-01-02' | date_to_relative}}\n"),
    Variable(VariableGroup.FILTERS, "date_from",
             'Relative time from a compare date back to the input ("a year ago").',
             "string", "\n{{'1999-01-01' | date_from('2000-01-01')}}\n"),
    Variable(VariableGroup.FILTERS, "date_to",
             'Relative time from the input forward to a compare date ("in a year").',
             "string", "\n{{'1999-01-01' | date_to('2000-01-01')}}\n"),
    Variable(VariableGroup.FILTERS, "random",
             "Randomly selects one of the input values.",
             "string", "\n{{['apple', 'banana', 'cherry'] | random}}\n"),
    Variable(VariableGroup.FILTERS, "roll",
             "Rolls dice written in <count>d<sides> notation and returns the total.",
             "number", "\n{{'1d20' | roll}}\n"),
    Variable(VariableGroup.FILTERS, "token_size",
             "Counts the tokens of the input text with the context tokenizer.",
             "number", "\n{{ char.description | token_size }}\n"),
)


def search_variables(keyword: str, variables: tuple[Variable, ...] = VARIABLES) -> list[Variable]:
    """Find catalog entries matching a keyword.

    Matches the keyword case-insensitively against the variable name,
    description and data type. Keywords that are not valid regular
    expressions are matched literally.

    Args:
        keyword: Search text or regular expression.
        variables: Catalog to search.

    Returns:
        Matching entries in catalog order; every entry for an empty keyword.
    """
    keyword = keyword.strip()
    try:
        pattern = re.compile(keyword, re.IGNORECASE)
    except re.error:
        pattern = re.compile(re.escape(keyword), re.IGNORECASE)

    return [
        variable for variable in variables
        if pattern.search(variable.variable)
        or pattern.search(variable.description)
        or pattern.search(variable.data_type)
    ]
