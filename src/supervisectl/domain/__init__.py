"""Domain layer - type descriptors, schemas, registry and resolver.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""

from supervisectl.domain.errors import Issue, IssueCode, SchemaDefinitionError, SourceLocation
from supervisectl.domain.registry import DirectiveRegistry, RegistryBuilder, build_registry
from supervisectl.domain.resolver import ExtraFieldPolicy, Resolution, Resolver, ResolverPolicy

__all__ = [
    "DirectiveRegistry",
    "ExtraFieldPolicy",
    "Issue",
    "IssueCode",
    "RegistryBuilder",
    "Resolution",
    "Resolver",
    "ResolverPolicy",
    "SchemaDefinitionError",
    "SourceLocation",
    "build_registry",
]
