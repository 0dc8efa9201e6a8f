from datetime import datetime
from itertools import product

import pytest

from src.todo_api.models import Todo, TodoStatus
from src.todo_api.repositories import SQLAlchemyTodoRepository
from src.todo_api.schemas import TodoUpdate
from src.todo_api.services import TodoNotFoundError, TodoService, matches_filters

JAN_10 = datetime(2025, 1, 10)


def review_with_report():
    return Todo(
        description="Quarterly review",
        status=TodoStatus.IN_PROGRESS,
        due_date=JAN_10,
        subtasks=[Todo(description="urgent report", status=TodoStatus.TODO)],
    )


class TestMatchesFilters:
    def test_no_filters_matches_everything(self):
        assert matches_filters(Todo(description="x", status=TodoStatus.TODO))

    def test_subtask_text_match_includes_parent(self):
        assert matches_filters(review_with_report(), text="report")

    def test_subtask_text_match_requires_parent_status(self):
        assert not matches_filters(review_with_report(), text="report", status=TodoStatus.DONE)
        assert not matches_filters(review_with_report(), text="report", status=TodoStatus.TODO)

    def test_subtask_text_match_requires_parent_due_date(self):
        todo = review_with_report()
        assert matches_filters(todo, text="report", due_before=datetime(2025, 1, 11))
        assert not matches_filters(todo, text="report", due_before=JAN_10)

    def test_text_without_subtasks(self):
        todo = Todo(description="Buy Milk", status=TodoStatus.TODO)
        assert matches_filters(todo, text="milk")
        assert not matches_filters(todo, text="bread")

    def test_due_before_needs_a_due_date(self):
        todo = Todo(description="Someday", status=TodoStatus.TODO)
        assert not matches_filters(todo, due_before=JAN_10)

    def test_empty_text_is_absent(self):
        assert matches_filters(Todo(description="anything", status=TodoStatus.TODO), text="")


@pytest.fixture()
def repo(session):
    return SQLAlchemyTodoRepository(session)


@pytest.fixture()
def dataset(repo):
    todos = [
        review_with_report(),
        Todo(description="Buy Milk", status=TodoStatus.TODO, due_date=datetime(2025, 2, 1)),
        Todo(description="Call plumber", status=TodoStatus.DONE),
        Todo(description="ÉCLAIR au chocolat", status=TodoStatus.TODO),
        Todo(
            description="Release 2.0",
            status=TodoStatus.DONE,
            due_date=datetime(2025, 1, 5),
            subtasks=[
                Todo(description="Write changelog", status=TodoStatus.IN_PROGRESS),
                Todo(description="Tag milk-bot release", status=TodoStatus.DONE),
            ],
        ),
    ]
    for todo in todos:
        repo.save(todo)
    return todos


class TestTodoService:
    def test_filter_strategies_agree(self, repo, dataset):
        database = TodoService(repo, "database")
        application = TodoService(repo, "application")
        statuses = [None, *TodoStatus]
        dues = [None, datetime(2025, 1, 6), datetime(2025, 1, 11), datetime(2025, 3, 1)]
        texts = [None, "", "milk", "REPORT", "release", "nothing", "éclair", "Éclair"]

        for status, due, text in product(statuses, dues, texts):
            expected = [t.id for t in application.get_all_todos_with_filters(status, due, text)]
            actual = [t.id for t in database.get_all_todos_with_filters(status, due, text)]
            assert actual == expected, (status, due, text)

    def test_text_filter_folds_non_ascii_case(self, repo, dataset):
        for strategy in ("database", "application"):
            result = TodoService(repo, strategy).get_all_todos_with_filters(text="éclair")
            assert [t.description for t in result] == ["ÉCLAIR au chocolat"], strategy

    def test_filters_return_only_top_level(self, repo, dataset):
        service = TodoService(repo)
        result = service.get_all_todos_with_filters(text="milk")
        assert [t.description for t in result] == ["Buy Milk", "Release 2.0"]

    def test_passthroughs(self, repo, dataset):
        service = TodoService(repo)
        assert len(service.get_all_todos()) == 8
        assert len(service.get_all_todos_with_subtasks()) == 8
        assert service.get_todo_by_id(dataset[0].id) is dataset[0]
        assert service.get_todo_by_id(9999) is None

    def test_create_with_parent(self, repo, dataset):
        service = TodoService(repo)
        parent = dataset[1]
        child = Todo(description="Check fridge", status=TodoStatus.TODO)
        child.parent = parent
        created = service.create_todo(child)
        assert created.parent_id == parent.id
        assert created in parent.subtasks

    def test_update_overwrites_only_mutable_fields(self, repo, dataset):
        service = TodoService(repo)
        todo = dataset[0]
        original_created_at = todo.created_at
        subtask_ids = [s.id for s in todo.subtasks]

        updated = service.update_todo(
            todo.id, TodoUpdate(description="Annual review", status=TodoStatus.DONE)
        )
        assert updated.id == todo.id
        assert updated.created_at == original_created_at
        assert updated.description == "Annual review"
        assert updated.due_date is None
        assert updated.status == TodoStatus.DONE
        assert [s.id for s in updated.subtasks] == subtask_ids

    def test_update_legacy_done_flag(self, repo, dataset):
        service = TodoService(repo)
        tid = dataset[2].id
        assert service.update_todo(tid, TodoUpdate(description="x", done=False)).status == TodoStatus.TODO
        assert service.update_todo(tid, TodoUpdate(description="x", done=True)).done is True

    def test_update_missing_raises(self, repo):
        with pytest.raises(TodoNotFoundError):
            TodoService(repo).update_todo(404, TodoUpdate(description="x"))

    def test_delete_cascades_and_tolerates_missing(self, repo, dataset):
        service = TodoService(repo)
        service.delete_todo(dataset[4].id)
        service.delete_todo(dataset[4].id)
        assert len(service.get_all_todos()) == 5
