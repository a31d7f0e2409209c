"""
Demo bot used by ``topicstack chat``.

Topics:
  main      root; greets, and enters ``math`` on "do math"
  math      sub-topic; evaluates arithmetic until "done", reports back to main
  signup    root; entered from anywhere with "signup <x>"
  validate  sub-topic of signup; "name <name>" reports back via ``on_validate_name``
  global    help, signup, bye (clears the stack) and a catch-all reply
"""

from __future__ import annotations

import ast
import operator
import re
from typing import Any

from topicstack.core.conditions import (
    define_condition,
    message_text,
    no_match_on,
    regex_condition,
)
from topicstack.core.protocol import (
    clear_all_topics,
    disable_conditions_except,
    enter_topic,
    exit_topic,
)
from topicstack.core.registry import TopicRegistry
from topicstack.core.stack import ApplicationState
from topicstack.core.topics import define_topic

HELP_TEXT = (
    "Try: 'hello', 'do math', 'signup <anything>', 'help' or 'bye'. "
    "In math mode type an expression like 2 * (3 + 4), or 'done'."
)

_ARITHMETIC = re.compile(r"^[0-9().+\-*/%\s]+$")
_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


def evaluate_arithmetic(expression: str) -> int | float:
    """Evaluate a plain arithmetic expression (numbers, + - * / // %, parentheses)."""

    def _eval(node: ast.AST) -> Any:
        if isinstance(node, ast.Expression):
            return _eval(node.body)
        if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
            return node.value
        if isinstance(node, ast.BinOp) and type(node.op) in _OPERATORS:
            return _OPERATORS[type(node.op)](_eval(node.left), _eval(node.right))
        if isinstance(node, ast.UnaryOp) and type(node.op) in _OPERATORS:
            return _OPERATORS[type(node.op)](_eval(node.operand))
        raise ValueError(f"Unsupported expression element: {type(node).__name__}")

    return _eval(ast.parse(expression.strip(), mode="eval"))


@no_match_on(SyntaxError, ValueError, ZeroDivisionError)
def arithmetic(state: ApplicationState, message: Any) -> int | float | None:
    text = message_text(message)
    if not isinstance(text, str) or not _ARITHMETIC.match(text) or not text.strip():
        return None
    return evaluate_arithmetic(text)


def build_registry() -> TopicRegistry:
    async def on_math_done(state: ApplicationState, args: dict[str, Any]) -> str:
        count = args.get("count", 0)
        return f"Leaving math mode after {count} calculation(s)."

    async def on_validate_name(state: ApplicationState, args: dict[str, Any]) -> str:
        if not args.get("success"):
            return "Signup cancelled."
        state.context.data["name"] = args["name"]
        return f"you signed up as {args['name']}."

    # main ------------------------------------------------------------------

    async def enter_math(state: ApplicationState, result: Any) -> Any:
        return await enter_topic(state, math_topic, main_topic, None, on_math_done)

    main_topic = define_topic(
        "main",
        lambda args, user_data: {"greeted": 0},
        is_root=True,
        conditions=[
            regex_condition(
                "respond-to-hello",
                [re.compile(r"^hello", re.IGNORECASE)],
                lambda state, result: "hey, what's up!",
            ),
            regex_condition("do-math", [re.compile(r"^do math$", re.IGNORECASE)], enter_math),
        ],
        callbacks={"on_math_done": on_math_done},
    )

    # math ------------------------------------------------------------------

    def calculated(state: ApplicationState, value: int | float) -> str:
        state.context.data["count"] += 1
        return f"= {value}"

    async def leave_math(state: ApplicationState, result: Any) -> Any:
        return await exit_topic(state, {"count": state.context.data["count"]})

    math_topic = define_topic(
        "math",
        lambda args, user_data: {"count": 0},
        after_init=lambda state: "Math mode. Give me an expression, or say 'done'.",
        conditions=[
            define_condition("calc", arithmetic, calculated),
            regex_condition("done", [re.compile(r"^(done|exit)$", re.IGNORECASE)], leave_math),
        ],
    )

    # signup ----------------------------------------------------------------

    async def ask_name(state: ApplicationState, result: Any) -> Any:
        return await enter_topic(state, validate_topic, signup_topic, None, on_validate_name)

    signup_topic = define_topic(
        "signup",
        lambda args, user_data: {"reason": args, "name": None},
        is_root=True,
        after_init=lambda state: "Signing you up. Say 'name' to choose a name.",
        conditions=[regex_condition("name", [r"^name$"], ask_name)],
        callbacks=[on_validate_name],
    )

    def validate_after_init(state: ApplicationState) -> str:
        disable_conditions_except(state, ["help", "bye"])
        return "Type 'name <your name>'."

    async def validate_name(state: ApplicationState, result: Any) -> Any:
        return await exit_topic(state, {"success": True, "name": result.group(1)})

    validate_topic = define_topic(
        "validate",
        after_init=validate_after_init,
        conditions=[regex_condition("validate", [r"^name (.+)$"], validate_name)],
    )

    # global ----------------------------------------------------------------

    async def start_signup(state: ApplicationState, result: Any) -> Any:
        return await enter_topic(state, signup_topic, global_topic, result.group(1))

    async def bye(state: ApplicationState, result: Any) -> str:
        await clear_all_topics(state)
        return "Bye! Conversation cleared."

    global_topic = define_topic(
        "global",
        conditions=[
            regex_condition(
                "help",
                [re.compile(r"^(help|\?)$", re.IGNORECASE)],
                lambda state, result: HELP_TEXT,
            ),
            regex_condition("signup", [r"^signup (.*)$"], start_signup),
            regex_condition("bye", [re.compile(r"^(bye|reset)$", re.IGNORECASE)], bye),
            define_condition(
                "fallback",
                lambda state, message: message,
                lambda state, message: "Sorry, I didn't get that. Type 'help'.",
            ),
        ],
    )

    return TopicRegistry([global_topic, main_topic, math_topic, signup_topic, validate_topic])
