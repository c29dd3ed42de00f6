"""
Unit tests for ProjectRepository

Tests registration, lookup and delayed eviction of terminal projects
"""
import asyncio
import pytest

from sogni_client.core.domain.job import JobData, JobStatus
from sogni_client.core.domain.project import Project, ProjectParams
from sogni_client.core.exceptions import DomainError
from sogni_client.core.repositories.project_repo import ProjectRepository


@pytest.fixture
def repo():
    return ProjectRepository(gc_timeout=0.02)


@pytest.fixture
def project():
    return Project(ProjectParams(model_id="model-a", positive_prompt="a cat"))


class TestProjectRepository:
    """Test CRUD operations"""

    def test_add_and_get(self, repo, project):
        repo.add(project)

        assert repo.get_by_id(project.id) is project
        assert project.id in repo
        assert len(repo) == 1
        assert repo.get_all() == [project]

    def test_get_unknown_returns_none(self, repo):
        assert repo.get_by_id("missing") is None

    def test_duplicate_add_rejected(self, repo, project):
        repo.add(project)
        with pytest.raises(ValueError, match="already registered"):
            repo.add(project)

    def test_delete_releases_subscriptions(self, repo, project):
        repo.add(project)
        assert project.listener_count("completed") == 1

        assert repo.delete(project.id) is project
        assert repo.delete(project.id) is None
        assert project.listener_count("completed") == 0
        assert project.listener_count("failed") == 0

    @pytest.mark.asyncio
    async def test_in_flight_excludes_terminal(self, repo, project):
        other = Project(ProjectParams(model_id="model-a", positive_prompt="a dog"))
        repo.add(project)
        repo.add(other)

        other._fail(DomainError(5003, "Job timed out"))

        assert repo.get_in_flight() == [project]
        repo.clear()


class TestGarbageCollection:
    """Test delayed eviction"""

    @pytest.mark.asyncio
    async def test_terminal_project_evicted_after_grace_window(self, repo, project):
        repo.add(project)
        job = project._add_job(JobData(id="img-1", step_count=20))

        job._update(status=JobStatus.COMPLETED, result_url="u1")

        assert repo.is_scheduled_for_eviction(project.id)
        assert repo.get_by_id(project.id) is project
        await asyncio.sleep(0.05)
        assert repo.get_by_id(project.id) is None

    @pytest.mark.asyncio
    async def test_eviction_releases_job_subscriptions(self, repo, project):
        repo.add(project)
        job = project._add_job(JobData(id="img-1", step_count=20))
        job._update(status=JobStatus.COMPLETED, result_url="u1")
        await asyncio.sleep(0.05)

        # Job keeps only its own handler
        assert job.listener_count("updated") == 1
        assert job.listener_count("completed") == 0

    @pytest.mark.asyncio
    async def test_failed_project_evicted(self, repo, project):
        repo.add(project)
        project._fail(DomainError(0, "Server disconnected"))

        await asyncio.sleep(0.05)

        assert len(repo) == 0

    @pytest.mark.asyncio
    async def test_clear_cancels_pending_eviction(self, repo, project):
        repo.add(project)
        project._fail(DomainError(0, "Server disconnected"))

        repo.clear()

        assert not repo.is_scheduled_for_eviction(project.id)
        assert len(repo) == 0
