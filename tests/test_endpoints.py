"""Tests for the resource clients."""

import io
from datetime import datetime, timezone

import pytest
import httpx

from canvas_client.endpoints import (
    AccountsClient,
    AssignmentsClient,
    CoursesClient,
    CurrentUserClient,
    TermsClient,
    resolve_id,
)
from canvas_client.entities import (
    Account,
    AssessmentRubric,
    Assignment,
    AssignmentDate,
    Attachment,
    Course,
    FileUpload,
    LatePolicyStatus,
    PeerReview,
    Submission,
    SubmissionFile,
    SubmissionSummary,
    Term,
    User,
)
from canvas_client import exceptions
from canvas_client.exceptions import ClientError, ValidationError
from canvas_client.settings import (
    CourseInclude,
    CourseItem,
    CourseList,
    ListSettings,
    SubmissionInclude,
    SubmissionList,
)

from conftest import RecordingHandler, async_iter, collect, create_connection


ASSIGNMENTS = "/api/v1/courses/5/assignments"


def test_resolve_id():
    """Test that entities and ids are both accepted."""
    assert resolve_id(3) == 3
    assert resolve_id(User(id=4)) == 4


class TestCurrentUserClient:
    @pytest.mark.asyncio
    async def test_get(self, mock_connection):
        mock_connection.retrieve.return_value = User(id=1, name="Me")

        user = await CurrentUserClient(mock_connection).get()

        assert user.name == "Me"
        mock_connection.retrieve.assert_awaited_once_with("/api/v1/users/self", User)


class TestAccountsClient:
    @pytest.mark.asyncio
    async def test_list_for_current_user(self, mock_connection):
        mock_connection.list.return_value = async_iter([Account(id=1), Account(id=2)])
        settings = ListSettings(max_pages=1)

        accounts = await collect(AccountsClient(mock_connection).list_for_current_user(settings))

        assert [a.id for a in accounts] == [1, 2]
        mock_connection.list.assert_called_once_with("/api/v1/accounts", Account, settings)

    @pytest.mark.asyncio
    async def test_retrieve(self, mock_connection):
        mock_connection.retrieve.return_value = None

        assert await AccountsClient(mock_connection).retrieve(Account(id=3)) is None
        mock_connection.retrieve.assert_awaited_once_with("/api/v1/accounts/3", Account)


class TestTermsClient:
    @pytest.mark.asyncio
    async def test_retrieve(self, mock_connection):
        mock_connection.retrieve.return_value = Term(id=2)

        term = await TermsClient(mock_connection).retrieve(1, Term(id=2))

        assert term.id == 2
        mock_connection.retrieve.assert_awaited_once_with("/api/v1/accounts/1/terms/2", Term)

    @pytest.mark.asyncio
    async def test_list_for_account(self, mock_connection):
        mock_connection.list.return_value = async_iter([Term(id=1)])

        terms = await collect(TermsClient(mock_connection).list_for_account(Account(id=1)))

        assert [t.id for t in terms] == [1]
        mock_connection.list.assert_called_once_with(
            "/api/v1/accounts/1/terms",
            Term,
            None,
            key="enrollment_terms",
        )


class TestCoursesClient:
    """Tests for the courses client; every request includes the term."""

    @pytest.mark.asyncio
    async def test_list_for_current_user(self, mock_connection):
        mock_connection.list.return_value = async_iter([Course(id=1)])

        courses = await collect(CoursesClient(mock_connection).list_for_current_user())

        assert [c.id for c in courses] == [1]
        url, model, settings = mock_connection.list.call_args.args
        assert url == "/api/v1/courses"
        assert model is Course
        assert settings.options == CourseInclude.TERM

    @pytest.mark.asyncio
    async def test_list_for_account_keeps_options(self, mock_connection):
        original = CourseList(options=CourseInclude.TEACHERS, term_id=3)

        await collect(CoursesClient(mock_connection).list_for_account(Account(id=4), original))

        url, _, settings = mock_connection.list.call_args.args
        assert url == "/api/v1/accounts/4/courses"
        assert str(settings.to_parameters()) == "?per_page=50&include[]=term&include[]=teachers&enrollment_term_id=3"
        assert original.options == CourseInclude.TEACHERS

    @pytest.mark.asyncio
    async def test_retrieve(self, mock_connection):
        mock_connection.retrieve.return_value = Course(id=7)

        course = await CoursesClient(mock_connection).retrieve(7, CourseItem(options=CourseInclude.TOTAL_STUDENTS))

        assert course.id == 7
        url, model, parameters = mock_connection.retrieve.call_args.args
        assert url == "/api/v1/courses/7"
        assert model is Course
        assert str(parameters) == "?include[]=term&include[]=total_students"


class TestAssignments:
    """Tests for creating, updating and reading assignments."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", None])
    async def test_create_requires_name(self, mock_connection, name):
        assignment = Assignment.model_construct(name=name)

        with pytest.raises(ValidationError) as exc_info:
            await AssignmentsClient(mock_connection).create(5, assignment)

        assert exc_info.value.message == "Assignments must have a name - cannot be null or empty"
        mock_connection.post_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create(self, mock_connection):
        mock_connection.post_json.return_value = Assignment(id=10, name="Test")

        result = await AssignmentsClient(mock_connection).create(Course(id=5), Assignment(name="Test", points_possible=5))

        assert result.id == 10
        assert result.course_id == 5
        url, model, body = mock_connection.post_json.call_args.args
        assert url == ASSIGNMENTS
        assert model is Assignment
        assert body["assignment"]["name"] == "Test"
        assert body["assignment"]["points_possible"] == 5

    @pytest.mark.asyncio
    async def test_create_without_result(self, mock_connection):
        mock_connection.post_json.return_value = None

        with pytest.raises(ClientError) as exc_info:
            await AssignmentsClient(mock_connection).create(5, Assignment(name="Test"))

        assert exc_info.value.message == "No assignment returned from Canvas"

    @pytest.mark.asyncio
    async def test_update_uses_assignment_ids(self, mock_connection):
        mock_connection.put_json.return_value = Assignment(id=9, name="Renamed")

        result = await AssignmentsClient(mock_connection).update(None, None, Assignment(id=9, name="Renamed", course_id=5))

        assert result.course_id == 5
        assert mock_connection.put_json.call_args.args[0] == f"{ASSIGNMENTS}/9"

    @pytest.mark.asyncio
    async def test_update_requires_name(self, mock_connection):
        with pytest.raises(ValidationError):
            await AssignmentsClient(mock_connection).update(5, 9, Assignment(id=9))
        mock_connection.put_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_for_course(self, mock_connection):
        mock_connection.list.return_value = async_iter([Assignment(id=1), Assignment(id=2)])

        assignments = await collect(AssignmentsClient(mock_connection).list_for_course(5))

        assert [(a.id, a.course_id) for a in assignments] == [(1, 5), (2, 5)]
        assert mock_connection.list.call_args.args[0] == ASSIGNMENTS

    @pytest.mark.asyncio
    async def test_retrieve(self, mock_connection):
        mock_connection.retrieve.return_value = Assignment(id=9)

        assignment = await AssignmentsClient(mock_connection).retrieve(5, 9)

        assert assignment.course_id == 5
        assert mock_connection.retrieve.call_args.args[0] == f"{ASSIGNMENTS}/9"

    @pytest.mark.asyncio
    async def test_retrieve_missing(self, mock_connection):
        mock_connection.retrieve.return_value = None
        assert await AssignmentsClient(mock_connection).retrieve(5, 9) is None


class TestOverridesAndPeerReviews:
    @pytest.mark.asyncio
    async def test_list_override_dates(self, mock_connection):
        mock_connection.list.return_value = async_iter([AssignmentDate(id=1)])

        dates = await collect(AssignmentsClient(mock_connection).list_override_dates(5, Assignment(id=9)))

        assert (dates[0].course_id, dates[0].assignment_id) == (5, 9)
        assert mock_connection.list.call_args.args[0] == f"{ASSIGNMENTS}/9/overrides"

    @pytest.mark.asyncio
    async def test_add_override_for_section(self, mock_connection):
        mock_connection.post_form.return_value = AssignmentDate(id=3)
        due = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

        result = await AssignmentsClient(mock_connection).add_override_for_section(5, 9, 77, due_at=due)

        assert (result.course_id, result.assignment_id) == (5, 9)
        url, model, values = mock_connection.post_form.call_args.args
        assert url == f"{ASSIGNMENTS}/9/overrides"
        assert model is AssignmentDate
        assert values.to_pairs() == [
            ("assignment_override[course_section_id]", "77"),
            ("assignment_override[due_at]", "2024-05-01T12:00:00+00:00"),
        ]

    @pytest.mark.asyncio
    async def test_update_override(self, mock_connection):
        mock_connection.put_form.return_value = AssignmentDate(id=3)
        lock = datetime(2024, 6, 1, tzinfo=timezone.utc)

        await AssignmentsClient(mock_connection).update_override(5, 9, AssignmentDate(id=3), lock_at=lock)

        url, _, values = mock_connection.put_form.call_args.args
        assert url == f"{ASSIGNMENTS}/9/overrides/3"
        assert values.to_pairs() == [("assignment_override[lock_at]", "2024-06-01T00:00:00+00:00")]

    @pytest.mark.asyncio
    async def test_override_without_result(self, mock_connection):
        mock_connection.put_form.return_value = None
        with pytest.raises(ClientError):
            await AssignmentsClient(mock_connection).update_override(5, 9, 3)

    @pytest.mark.asyncio
    async def test_list_peer_reviews(self, mock_connection):
        mock_connection.list.return_value = async_iter([PeerReview(id=1, assessor_id=2, user_id=3)])

        reviews = await collect(AssignmentsClient(mock_connection).list_peer_reviews(5, 9))

        assert (reviews[0].course_id, reviews[0].assignment_id) == (5, 9)
        assert mock_connection.list.call_args.args[0] == f"{ASSIGNMENTS}/9/peer_reviews"


class TestSubmissions:
    """Tests for reading and updating submissions."""

    @pytest.mark.asyncio
    async def test_list_submissions_includes_user(self, mock_connection):
        mock_connection.list.return_value = async_iter([Submission(id=1, user_id=7)])

        submissions = await collect(
            AssignmentsClient(mock_connection).list_submissions(
                5, 9, SubmissionList(options=SubmissionInclude.SUBMISSION_COMMENTS)
            )
        )

        assert (submissions[0].course_id, submissions[0].assignment_id) == (5, 9)
        url, _, settings = mock_connection.list.call_args.args
        assert url == f"{ASSIGNMENTS}/9/submissions"
        assert str(settings.to_parameters()) == "?per_page=50&include[]=user&include[]=submission_comments"

    @pytest.mark.asyncio
    async def test_retrieve_submission(self, mock_connection):
        mock_connection.retrieve.return_value = Submission(id=1, user_id=7)

        submission = await AssignmentsClient(mock_connection).retrieve_submission(5, 9, User(id=7))

        assert submission.assignment_id == 9
        assert mock_connection.retrieve.call_args.args[0] == f"{ASSIGNMENTS}/9/submissions/7"

    @pytest.mark.asyncio
    async def test_retrieve_submission_summary(self, mock_connection):
        mock_connection.retrieve.return_value = SubmissionSummary(graded=1)

        summary = await AssignmentsClient(mock_connection).retrieve_submission_summary(5, 9)

        assert (summary.course_id, summary.assignment_id, summary.graded) == (5, 9, 1)
        mock_connection.retrieve.assert_awaited_once_with(f"{ASSIGNMENTS}/9/submission_summary", SubmissionSummary)

    @pytest.mark.asyncio
    async def test_retrieve_submission_summary_missing(self, mock_connection):
        mock_connection.retrieve.return_value = None

        with pytest.raises(ClientError) as exc_info:
            await AssignmentsClient(mock_connection).retrieve_submission_summary(5, 9)

        assert exc_info.value.message == "No summary returned from Canvas"

    @pytest.mark.asyncio
    async def test_add_comment(self, mock_connection):
        mock_connection.put_form.return_value = Submission(id=1)

        result = await AssignmentsClient(mock_connection).add_comment(5, 9, 7, "Nice work")

        assert result.course_id == 5
        url, model, values = mock_connection.put_form.call_args.args
        assert url == f"{ASSIGNMENTS}/9/submissions/7"
        assert model is Submission
        assert values.to_pairs() == [("comment[text_comment]", "Nice work")]
        mock_connection.upload_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_add_comment_with_file(self, mock_connection):
        mock_connection.upload_file.return_value = Attachment(id=99)
        mock_connection.put_form.return_value = Submission(id=1)
        stream = io.BytesIO(b"abc")

        await AssignmentsClient(mock_connection).add_comment(
            5, 9, 7, "See attached", FileUpload(name="a.txt", stream=stream, size=3)
        )

        mock_connection.upload_file.assert_awaited_once_with(
            f"{ASSIGNMENTS}/9/submissions/7/comments/files",
            Attachment,
            stream,
            "a.txt",
            {"name": "a.txt", "size": "3"},
        )
        values = mock_connection.put_form.call_args.args[2]
        assert values.to_pairs() == [("comment[text_comment]", "See attached"), ("comment[file_ids][]", "99")]

    @pytest.mark.asyncio
    async def test_mark_submission(self, mock_connection):
        mock_connection.put_form.return_value = Submission(id=1, grade="8")
        rubric = {"crit_1": AssessmentRubric(points=2.5, rating_id="r1", comments="Good")}

        await AssignmentsClient(mock_connection).mark_submission(5, 9, 7, 8.0, "Well done", rubric)

        url, _, values = mock_connection.put_form.call_args.args
        assert url == f"{ASSIGNMENTS}/9/submissions/7"
        assert values.to_pairs() == [
            ("submission[posted_grade]", "8"),
            ("comment[text_comment]", "Well done"),
            ("rubric_assessment[crit_1][points]", "2.5"),
            ("rubric_assessment[crit_1][rating_id]", "r1"),
            ("rubric_assessment[crit_1][comments]", "Good"),
        ]

    @pytest.mark.asyncio
    async def test_update_submission_lateness(self, mock_connection):
        mock_connection.put_form.return_value = Submission(id=1)

        await AssignmentsClient(mock_connection).update_submission_lateness(5, 9, 7, LatePolicyStatus.LATE, 3600)

        values = mock_connection.put_form.call_args.args[2]
        assert values.to_pairs() == [
            ("submission[late_policy_status]", "late"),
            ("submission[seconds_late_override]", "3600"),
        ]

    @pytest.mark.asyncio
    async def test_update_without_result(self, mock_connection):
        mock_connection.put_form.return_value = None

        with pytest.raises(ClientError) as exc_info:
            await AssignmentsClient(mock_connection).update_submission_lateness(5, 9, 7, LatePolicyStatus.MISSING)

        assert exc_info.value.message == "No submission returned from Canvas"

    @pytest.mark.asyncio
    async def test_upload_submission(self, mock_connection):
        mock_connection.upload_file.return_value = Attachment(id=99)
        mock_connection.post_form.return_value = Submission(id=1)

        result = await AssignmentsClient(mock_connection).upload_submission(
            5, 9, 7, FileUpload(name="work.pdf", stream=io.BytesIO(b"%PDF"))
        )

        assert result.assignment_id == 9
        assert mock_connection.upload_file.call_args.args[0] == f"{ASSIGNMENTS}/9/submissions/7/files"
        url, _, values = mock_connection.post_form.call_args.args
        assert url == f"{ASSIGNMENTS}/9/submissions"
        assert values.to_pairs() == [
            ("submission[submission_type]", "online_upload"),
            ("submission[file_ids][]", "99"),
            ("submission[user_id]", "7"),
        ]


class TestDownloads:
    """Tests for downloading submitted files."""

    FILE = SubmissionFile(filename="work.txt", url="http://canvas.com/files/1/download")

    @pytest.mark.asyncio
    async def test_download_as_string(self, mock_connection):
        mock_connection.get.return_value = httpx.Response(200, text="hello")

        assert await AssignmentsClient(mock_connection).download_submission_as_string(self.FILE) == "hello"
        mock_connection.get.assert_awaited_once_with("http://canvas.com/files/1/download")

    @pytest.mark.asyncio
    async def test_download_to_stream(self, mock_connection):
        mock_connection.get.return_value = httpx.Response(200, content=b"data")
        stream = io.BytesIO()

        await AssignmentsClient(mock_connection).download_submission_to_stream(self.FILE, stream)

        assert stream.getvalue() == b"data"
        mock_connection.get.assert_awaited_once_with("http://canvas.com/files/1/download", stream=True)

    @pytest.mark.asyncio
    async def test_download_to_file(self, mock_connection, tmp_path):
        mock_connection.get.return_value = httpx.Response(200, content=b"data")
        path = tmp_path / "work.txt"

        await AssignmentsClient(mock_connection).download_submission_to_file(self.FILE, path)

        assert path.read_bytes() == b"data"

    @pytest.mark.asyncio
    async def test_download_follows_redirect_to_storage(self):
        """Test that a download follows the Canvas redirect to the file storage."""
        handler = RecordingHandler(
            httpx.Response(302, headers={"Location": "http://files.example.com/blob"}),
            httpx.Response(200, content=b"hello"),
        )
        client = AssignmentsClient(create_connection(handler))
        file = SubmissionFile(filename="work.txt", url="http://canvas.com/files/1/download?download_frd=1")

        assert await client.download_submission_as_string(file) == "hello"
        assert handler.urls[1] == "http://files.example.com/blob"

    @pytest.mark.asyncio
    async def test_failed_download_leaves_no_file(self, tmp_path):
        """Test that the target file is not created when Canvas rejects the download."""
        handler = RecordingHandler(httpx.Response(404, text="Not found"))
        client = AssignmentsClient(create_connection(handler))
        path = tmp_path / "work.txt"

        with pytest.raises(exceptions.ConnectionError):
            await client.download_submission_to_file(self.FILE, path)

        assert not path.exists()

    @pytest.mark.asyncio
    async def test_failed_download_keeps_existing_file(self, tmp_path):
        """Test that an existing file survives a failed download."""
        handler = RecordingHandler(httpx.Response(500, text="Oops"))
        client = AssignmentsClient(create_connection(handler))
        path = tmp_path / "work.txt"
        path.write_bytes(b"previous")

        with pytest.raises(exceptions.ConnectionError):
            await client.download_submission_to_file(self.FILE, path)

        assert path.read_bytes() == b"previous"
