"""
containersecurity - Signed attestations for container images in CI builds.

A build names one container (repository URI plus a digest or tag) and a
list of steps to run against it. Before the build runs, its fields are
filled and checked one at a time, each depending on the ones before it
(credentials, then project, then attestor, then public key). When the
build runs, the container is resolved to an immutable ``repo@sha256:...``
reference, and each attestation step signs a payload for it with a Cloud
KMS key and submits the attestation to Container Analysis.

Example usage:
    from containersecurity import ContainerSecurityBuild, BuildLogger

    build = ContainerSecurityBuild.model_validate(yaml.safe_load(f))
    build.perform(os.environ, BuildLogger(project=build.project_id))
"""

__version__ = "0.1.0"
__all__ = [
    "AttestationPipeline",
    "BinAuthzBuildStep",
    "BuildLogger",
    "ContainerSecurityBuild",
    "IdentifierResolver",
    "__version__",
]


# Lazy imports keep ``import containersecurity`` free of client dependencies
def __getattr__(name: str):
    if name == "AttestationPipeline":
        from containersecurity.pipeline import AttestationPipeline
        return AttestationPipeline
    if name == "BinAuthzBuildStep":
        from containersecurity.binauthz import BinAuthzBuildStep
        return BinAuthzBuildStep
    if name == "BuildLogger":
        from containersecurity.logger import BuildLogger
        return BuildLogger
    if name == "ContainerSecurityBuild":
        from containersecurity.build import ContainerSecurityBuild
        return ContainerSecurityBuild
    if name == "IdentifierResolver":
        from containersecurity.validation import IdentifierResolver
        return IdentifierResolver
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
