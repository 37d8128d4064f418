"""Name primitives and validation rules.

This module defines strongly-typed aliases for identifiers that appear
in test specifications and plugin declarations.
"""

from typing import Annotated

from pydantic import Field

#: Base pattern for plugin and channel identifiers.
_NAME_PATTERN = r'[a-zA-Z][\w]*'

#: Namespaced block identifier with optional block states and data tag,
#: for example `minecraft:repeater[delay=2,facing=north]`. Letter case is
#: kept as written.
_BLOCK_PATTERN = r'^([A-Za-z0-9_.-]+:)?[A-Za-z0-9_./-]+(\[[^\]]*\])?(\{.*\})?$'

Variable = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Identifier',
        description=(
            'Name of a channel or plugin namespace. '
            'Identifiers must start with a letter and may contain '
            'letters, digits, or underscores.'
        ),
        examples=[
            'memory',
            'rcon',
        ],
    ),
]

BlockId = Annotated[
    str, Field(
        pattern=_BLOCK_PATTERN,
        title='Block identifier',
        description=(
            'Block identifier, optionally namespaced and optionally '
            'followed by block states in square brackets.'
        ),
        examples=[
            'stone',
            'minecraft:oak_planks',
            'minecraft:repeater[delay=2]',
        ],
    ),
]

StateName = Annotated[
    str, Field(
        pattern=r'^[a-z][a-z0-9_]*$',
        title='Block state property',
        description='Name of a block state property, for example `power`.',
        examples=[
            'power',
            'facing',
        ],
    ),
]
