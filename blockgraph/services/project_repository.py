"""
Project Repository - CRUD for the projects blocks are grouped into.
"""

from blockgraph.core.graph_store.base import GraphStore
from blockgraph.models.project import Project, ProjectInput, ProjectUpdate
from blockgraph.utils.exceptions import NotFoundError, ValidationError
from blockgraph.utils.id_generator import generate_project_id
from blockgraph.utils.logger import get_logger

logger = get_logger(__name__)


class ProjectRepository:
    """Owner-scoped project CRUD."""

    def __init__(self, graph_store: GraphStore):
        self.graph_store = graph_store

    async def create(self, name: str, owner: str, description: str = "") -> Project:
        """
        Create a project for ``owner``.

        Raises:
            ValidationError: If the owner or name is empty
        """
        if not owner:
            raise ValidationError("Owner cannot be empty")
        if not name or not name.strip():
            raise ValidationError("Project name cannot be empty")

        project = Project(
            id=generate_project_id(),
            user_id=owner,
            name=name.strip(),
            description=description or "",
        )
        created = await self.graph_store.create_project(project)
        logger.info("Created project", extra={"project_id": created.id, "user_id": owner})
        return created

    async def create_from_input(self, data: ProjectInput, owner: str) -> Project:
        return await self.create(data.name, owner, description=data.description)

    async def get(self, project_id: str, owner: str) -> Project:
        project = await self.graph_store.get_project(project_id, owner)
        if project is None:
            raise NotFoundError(
                f"Project not found: {project_id}", context={"project_id": project_id}
            )
        return project

    async def list(self, owner: str) -> list[Project]:
        if not owner:
            raise ValidationError("Owner cannot be empty")
        return await self.graph_store.list_projects(owner)

    async def update(self, project_id: str, owner: str, updates: ProjectUpdate | dict) -> Project:
        """
        Rename a project or change its description.

        An empty name is ignored; a description of "" clears it.

        Raises:
            NotFoundError: If the project does not exist for this owner
        """
        if isinstance(updates, dict):
            updates = ProjectUpdate(**updates)

        project = await self.graph_store.update_project(project_id, owner, updates.provided())
        if project is None:
            raise NotFoundError(
                f"Project not found: {project_id}", context={"project_id": project_id}
            )
        return project

    async def delete(self, project_id: str, owner: str) -> None:
        """
        Delete a project. Its blocks are kept and simply leave the project.

        Raises:
            NotFoundError: If the project does not exist for this owner
        """
        deleted = await self.graph_store.delete_project(project_id, owner)
        if not deleted:
            raise NotFoundError(
                f"Project not found: {project_id}", context={"project_id": project_id}
            )
        logger.info("Deleted project", extra={"project_id": project_id, "user_id": owner})
