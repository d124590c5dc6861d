"""SchemaService - describe the registered directive schemas."""

from __future__ import annotations

from typing import Any

from supervisectl.domain.schema import DirectiveSchema
from supervisectl.services.base import BaseService
from supervisectl.services.result import ServiceError, ServiceResult


def _describe(schema: DirectiveSchema) -> dict[str, Any]:
    return {
        "name": schema.name,
        "takes_arguments": schema.takes_arguments,
        "variants": [
            {
                "index": index,
                "signature": v.signature(),
                "fields": [{"name": f.name, "type": f.type.describe()} for f in v.fields],
                "builds": v.build is not None,
            }
            for index, v in enumerate(schema.variants)
        ],
    }


class SchemaService(BaseService):
    """Read-only view over the directive registry."""

    def describe(self, name: str | None = None) -> ServiceResult:
        """Describe one directive, or every registered directive."""
        if name is None:
            directives = [_describe(s) for s in self._registry]
            return ServiceResult(
                ok=True,
                op="describe_schema",
                data={"directives": directives, "count": len(directives)},
            )

        schema = self._registry.lookup(name)
        if schema is None:
            return ServiceResult(
                ok=False,
                op="describe_schema",
                error=ServiceError(
                    code="UNKNOWN_DIRECTIVE",
                    message=f"No directive named '{name}'",
                    detail={"available": self._registry.names()},
                ),
            )
        return ServiceResult(
            ok=True,
            op="describe_schema",
            data={"directives": [_describe(schema)], "count": 1},
        )
