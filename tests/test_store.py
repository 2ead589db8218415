from repo_assistant.models import ActionRequest, Message, Role
from repo_assistant.store import InMemoryConversationStore, JsonlConversationStore


def test_in_memory_store_is_keyed_by_session():
    store = InMemoryConversationStore()
    store.append("a", Message.user("hello"))
    store.append("b", Message.user("other"))
    store.append("a", Message.assistant("hi"))

    assert [m.content for m in store.load("a")] == ["hello", "hi"]
    assert [m.content for m in store.load("b")] == ["other"]
    assert store.load("never") == []


def test_in_memory_load_returns_a_copy():
    store = InMemoryConversationStore()
    store.append("a", Message.user("hello"))

    store.load("a").append(Message.user("sneaky"))

    assert len(store.load("a")) == 1


def test_jsonl_store_survives_restart(tmp_path):
    request = ActionRequest(id="c1", name="list_commits", arguments={"repoName": "demo"})
    first = JsonlConversationStore(tmp_path)
    first.append("1", Message.user("list commits"))
    first.append("1", Message.assistant("", [request]))

    reopened = JsonlConversationStore(tmp_path)
    history = reopened.load("1")

    assert [m.role for m in history] == [Role.USER, Role.ASSISTANT]
    assert history[1].action_requests == [request]


def test_jsonl_store_keeps_similar_ids_apart(tmp_path):
    store = JsonlConversationStore(tmp_path)
    store.append("a/b", Message.user("slash"))
    store.append("a_b", Message.user("underscore"))

    assert [m.content for m in store.load("a/b")] == ["slash"]
    assert [m.content for m in store.load("a_b")] == ["underscore"]
    assert all(p.parent == tmp_path for p in tmp_path.iterdir())


def test_jsonl_store_skips_torn_trailing_line(tmp_path):
    store = JsonlConversationStore(tmp_path)
    store.append("s", Message.user("kept"))
    with open(tmp_path / "s.jsonl", "a", encoding="utf-8") as fh:
        fh.write('{"role": "assis')

    assert [m.content for m in store.load("s")] == ["kept"]


def test_jsonl_append_after_torn_line_is_kept(tmp_path):
    store = JsonlConversationStore(tmp_path)
    store.append("s", Message.user("first"))
    with open(tmp_path / "s.jsonl", "a", encoding="utf-8") as fh:
        fh.write('{"role": "assis')

    JsonlConversationStore(tmp_path).append("s", Message.user("after restart"))

    assert [m.content for m in store.load("s")] == ["first", "after restart"]
