"""JSON Schema management."""

from functools import cache
from json import dumps

from pydantic.json_schema import GenerateJsonSchema

from flintmc.schema import TestSpec


class SchemaGenerator(GenerateJsonSchema):
    """JSON Schema generator for test specification documents."""

    @classmethod
    @cache
    def make_schema(cls, indent: int | str | None = 4) -> str:
        """Generate the JSON Schema for test specification documents.

        Args:
            indent: Indentation level used for JSON formatting.

        Returns:
            Serialized JSON Schema string.
        """
        schema = {
            **TestSpec.model_json_schema(
                by_alias=True,
                mode='validation',
                schema_generator=cls,
            ),
            'title': 'flintmc',
            'description': 'JSON Schema for flintmc test specification documents',
            '$schema': cls.schema_dialect,
        }

        return dumps(
            schema,
            ensure_ascii=False,
            sort_keys=True,
            indent=indent,
        )

