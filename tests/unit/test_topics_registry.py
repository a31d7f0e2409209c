"""Unit tests for topic definition and the topic registry."""

from __future__ import annotations

import pytest

from topicstack.core.conditions import define_condition
from topicstack.core.exceptions import RegistryError, UnknownCallbackError, UnknownTopicError
from topicstack.core.registry import GLOBAL_TOPIC, MAIN_TOPIC, TopicRegistry
from topicstack.core.topics import Topic, define_topic


def _cond(name: str):
    return define_condition(name, lambda s, m: m, lambda s, r: r)


def on_done(state, args):
    return args


# ---------------------------------------------------------------------------
# define_topic
# ---------------------------------------------------------------------------


class TestDefineTopic:
    def test_defaults(self) -> None:
        topic = define_topic("t")
        assert topic.name == "t"
        assert topic.is_root is False
        assert topic.conditions == ()
        assert dict(topic.callbacks) == {}
        assert topic.after_init is None
        assert topic.init(None, None) is None

    def test_conditions_keep_declared_order(self) -> None:
        topic = define_topic("t", conditions=[_cond("b"), _cond("a"), _cond("c")])
        assert topic.condition_names == ["b", "a", "c"]
        assert topic.find_condition("a") is topic.conditions[1]
        assert topic.find_condition("zzz") is None

    def test_duplicate_condition_names_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate condition"):
            define_topic("t", conditions=[_cond("a"), _cond("a")])

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            define_topic("")

    def test_callbacks_from_named_functions(self) -> None:
        topic = define_topic("t", callbacks=[on_done])
        assert topic.callback("on_done") is on_done

    def test_callbacks_from_mapping(self) -> None:
        topic = define_topic("t", callbacks={"finished": on_done})
        assert topic.callback("finished") is on_done

    def test_lambda_callback_list_rejected(self) -> None:
        with pytest.raises(ValueError):
            define_topic("t", callbacks=[lambda s, a: a])

    def test_callbacks_are_read_only(self) -> None:
        topic = define_topic("t", callbacks=[on_done])
        with pytest.raises(TypeError):
            topic.callbacks["x"] = on_done  # type: ignore[index]

    def test_direct_topic_callbacks_are_read_only(self) -> None:
        callbacks = {"on_done": on_done}
        topic = Topic("b", callbacks=callbacks)
        for t in (Topic("a"), topic):
            with pytest.raises(TypeError):
                t.callbacks["x"] = on_done  # type: ignore[index]
        callbacks["x"] = on_done
        assert "x" not in topic.callbacks


class TestCallbackSelector:
    def test_by_name(self) -> None:
        topic = define_topic("t", callbacks=[on_done])
        assert topic.callback_name("on_done") == "on_done"

    def test_by_function_identity(self) -> None:
        topic = define_topic("t", callbacks={"finished": on_done})
        assert topic.callback_name(on_done) == "finished"

    def test_unknown_name(self) -> None:
        topic = define_topic("t", callbacks=[on_done])
        with pytest.raises(UnknownCallbackError):
            topic.callback_name("nope")
        with pytest.raises(UnknownCallbackError):
            topic.callback("nope")

    def test_unregistered_function(self) -> None:
        def other(state, args):
            return None

        topic = define_topic("t", callbacks=[on_done])
        with pytest.raises(UnknownCallbackError):
            topic.callback_name(other)


# ---------------------------------------------------------------------------
# TopicRegistry
# ---------------------------------------------------------------------------


class TestTopicRegistry:
    def test_find_returns_same_object(self) -> None:
        g = define_topic(GLOBAL_TOPIC)
        registry = TopicRegistry([g])
        assert registry.find_topic(GLOBAL_TOPIC) is g
        assert registry.global_topic is g

    def test_unknown_topic(self) -> None:
        registry = TopicRegistry([define_topic(GLOBAL_TOPIC)])
        with pytest.raises(UnknownTopicError) as exc_info:
            registry.find_topic("ghost")
        assert exc_info.value.name == "ghost"
        assert registry.get("ghost") is None

    def test_duplicate_name_rejected(self) -> None:
        with pytest.raises(RegistryError):
            TopicRegistry([define_topic("a"), define_topic("a")])

    def test_reregistering_same_object_is_noop(self) -> None:
        a = define_topic("a")
        registry = TopicRegistry([a])
        registry.register([a])
        assert len(registry) == 1

    def test_validate_requires_global(self) -> None:
        with pytest.raises(RegistryError, match="global"):
            TopicRegistry([define_topic(MAIN_TOPIC, is_root=True)]).validate()

    def test_main_is_optional(self) -> None:
        registry = TopicRegistry([define_topic(GLOBAL_TOPIC)])
        registry.validate()
        assert registry.main_topic is None

    def test_find_callback(self) -> None:
        registry = TopicRegistry(
            [define_topic(GLOBAL_TOPIC), define_topic("s", callbacks=[on_done])]
        )
        assert registry.find_callback("s", "on_done") is on_done
        with pytest.raises(UnknownCallbackError):
            registry.find_callback("s", "missing")

    def test_iteration_and_membership(self) -> None:
        registry = TopicRegistry([define_topic(GLOBAL_TOPIC), define_topic("x")])
        assert registry.names() == [GLOBAL_TOPIC, "x"]
        assert [t.name for t in registry] == [GLOBAL_TOPIC, "x"]
        assert "x" in registry
        assert "y" not in registry
