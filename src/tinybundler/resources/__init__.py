"""Resource layer — resolve, scan, process and content-address references."""

from tinybundler.resources.addressing import ContentAddress, address, content_hash
from tinybundler.resources.alias import AliasResolver, ResolvedResource
from tinybundler.resources.processor import BuildContext, BuiltArtifact, ResourceProcessor
from tinybundler.resources.scanner import ReferenceMatch, rewrite, scan

__all__ = [
    "AliasResolver",
    "BuildContext",
    "BuiltArtifact",
    "ContentAddress",
    "ReferenceMatch",
    "ResolvedResource",
    "ResourceProcessor",
    "address",
    "content_hash",
    "rewrite",
    "scan",
]
