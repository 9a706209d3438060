"""Admin artifact and installer routes."""

from fastapi import APIRouter, Depends, Response, status

from update_registry.api.deps import get_artifact_service
from update_registry.models.release import (
    ArtifactCreate,
    ArtifactResponse,
    InstallerCreate,
    InstallerResponse,
)
from update_registry.services.artifact_service import ArtifactService

router = APIRouter()


@router.get("/artifacts", response_model=list[ArtifactResponse])
async def list_artifacts(
    app_id: str,
    release_id: str,
    service: ArtifactService = Depends(get_artifact_service),
) -> list[ArtifactResponse]:
    artifacts = await service.list_artifacts(app_id, release_id)
    return [ArtifactResponse.from_artifact(a) for a in artifacts]


@router.post("/artifacts", response_model=ArtifactResponse, status_code=status.HTTP_201_CREATED)
async def create_artifact(
    app_id: str,
    release_id: str,
    data: ArtifactCreate,
    service: ArtifactService = Depends(get_artifact_service),
) -> ArtifactResponse:
    """Attach an update artifact to a release.

    Args:
        app_id: App ID.
        release_id: Release ID.
        data: Artifact data.
        service: Artifact service.

    Returns:
        Created artifact.
    """
    artifact = await service.add_artifact(app_id, release_id, data)
    return ArtifactResponse.from_artifact(artifact)


@router.get("/artifacts/{artifact_id}", response_model=ArtifactResponse)
async def get_artifact(
    app_id: str,
    release_id: str,
    artifact_id: str,
    service: ArtifactService = Depends(get_artifact_service),
) -> ArtifactResponse:
    artifact = await service.get_artifact(app_id, release_id, artifact_id)
    return ArtifactResponse.from_artifact(artifact)


@router.delete("/artifacts/{artifact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_artifact(
    app_id: str,
    release_id: str,
    artifact_id: str,
    service: ArtifactService = Depends(get_artifact_service),
) -> Response:
    await service.delete_artifact(app_id, release_id, artifact_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/installers", response_model=list[InstallerResponse])
async def list_installers(
    app_id: str,
    release_id: str,
    service: ArtifactService = Depends(get_artifact_service),
) -> list[InstallerResponse]:
    installers = await service.list_installers(app_id, release_id)
    return [InstallerResponse.from_installer(i) for i in installers]


@router.post("/installers", response_model=InstallerResponse, status_code=status.HTTP_201_CREATED)
async def create_installer(
    app_id: str,
    release_id: str,
    data: InstallerCreate,
    service: ArtifactService = Depends(get_artifact_service),
) -> InstallerResponse:
    """Attach a first-time installer to a release."""
    installer = await service.add_installer(app_id, release_id, data)
    return InstallerResponse.from_installer(installer)


@router.delete("/installers/{installer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_installer(
    app_id: str,
    release_id: str,
    installer_id: str,
    service: ArtifactService = Depends(get_artifact_service),
) -> Response:
    await service.delete_installer(app_id, release_id, installer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
