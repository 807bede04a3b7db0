"""
Tests for the Execution Engine core components.
"""

import pytest
import asyncio
from typing import List

from canvasflow.engine.conditions import evaluate_condition, parse_number, tokenize
from canvasflow.engine.errors import EngineBusyError
from canvasflow.engine.executor import ExecutionEngine, run_workflow
from canvasflow.engine.graph import WorkflowEdge, WorkflowGraph
from canvasflow.engine.node import (
    DecisionNode,
    EndNode,
    FileNode,
    NoteNode,
    ProcessNode,
    ShapeNode,
    StartNode,
    parse_nodes,
)
from canvasflow.engine.state import (
    ExecutionContext,
    VariableKind,
    VariableStore,
    infer_kind,
    parse_assignment,
    parse_value,
)


def edge(source: str, target: str, tag: str = None) -> WorkflowEdge:
    return WorkflowEdge(id=f"{source}->{target}", source=source, target=target, branch_tag=tag)


def decision_graph(condition: str, tagged: bool = True):
    """start -> check -> (big | small) -> end"""
    nodes = [
        StartNode(id="start"),
        DecisionNode(id="check", condition=condition),
        ProcessNode(id="big", label="Big"),
        ProcessNode(id="small", label="Small"),
        EndNode(id="end"),
    ]
    edges = [
        edge("start", "check"),
        edge("check", "big", "yes" if tagged else None),
        edge("check", "small", "no" if tagged else None),
        edge("big", "end"),
        edge("small", "end"),
    ]
    return nodes, edges


def linear_graph() -> tuple:
    nodes = [
        StartNode(id="start"),
        ProcessNode(id="a", label="A"),
        ProcessNode(id="b", label="B"),
        EndNode(id="end"),
    ]
    edges = [edge("start", "a"), edge("a", "b"), edge("b", "end")]
    return nodes, edges


# ============================================================
# Variable Store Tests
# ============================================================

class TestVariableStore:
    """Tests for VariableStore and kind inference."""

    def test_infer_kind(self):
        """Test kinds are inferred from runtime types."""
        assert infer_kind("x") == VariableKind.STRING
        assert infer_kind(3) == VariableKind.NUMBER
        assert infer_kind(2.5) == VariableKind.NUMBER
        assert infer_kind(True) == VariableKind.BOOLEAN
        assert infer_kind({"a": 1}) == VariableKind.STRUCTURED
        assert infer_kind([1, 2]) == VariableKind.STRUCTURED

    def test_set_and_get(self):
        """Test writing and reading a variable."""
        store = VariableStore()
        store.set("count", 3)

        variable = store.get("count")
        assert variable.name == "count"
        assert variable.value == 3
        assert variable.kind == VariableKind.NUMBER
        assert store.get("missing") is None

    def test_overwrite(self):
        """Test later writes overwrite earlier ones, kind included."""
        store = VariableStore()
        store.set("x", 1)
        store.set("x", "one")

        assert store.get("x").value == "one"
        assert store.get("x").kind == VariableKind.STRING
        assert len(store) == 1

    def test_explicit_kind(self):
        """Test an explicit kind is kept."""
        store = VariableStore()
        store.set("raw", "42", VariableKind.NUMBER)
        assert store.get("raw").kind == VariableKind.NUMBER


class TestAssignmentParsing:
    """Tests for note assignment parsing."""

    def test_parse_number(self):
        assert parse_value("3") == 3
        assert isinstance(parse_value("3"), int)
        assert parse_value("2.5") == 2.5
        assert parse_value("-4") == -4

    def test_parse_boolean(self):
        assert parse_value("true") is True
        assert parse_value("FALSE") is False

    def test_parse_json(self):
        assert parse_value('{"a": [1, 2]}') == {"a": [1, 2]}
        assert parse_value("[1, 2]") == [1, 2]
        assert parse_value('"quoted"') == "quoted"

    def test_parse_strips_one_layer_of_quotes(self):
        assert parse_value("'hello'") == "hello"
        assert parse_value("plain text") == "plain text"
        assert parse_value("\"unterminated") == "unterminated"

    def test_parse_keeps_non_finite_numbers_as_text(self):
        """Test NaN, Infinity and overflowing numbers are not stored as floats."""
        assert parse_value("NaN") == "NaN"
        assert parse_value("Infinity") == "Infinity"
        assert parse_value("-Infinity") == "-Infinity"
        assert parse_value("1e400") == "1e400"
        assert parse_value("[1e400]") == "[1e400]"
        assert infer_kind(parse_value("NaN")) == VariableKind.STRING

    def test_parse_assignment(self):
        assert parse_assignment("count = 3") == ("count", 3)
        assert parse_assignment("flag=true") == ("flag", True)
        assert parse_assignment("Some notes\nname = 'Ada'") == ("name", "Ada")

    def test_parse_inline_assignment(self):
        """Test an assignment after leading text on the same line."""
        assert parse_assignment("Set the limit: limit = 5") == ("limit", 5)
        assert parse_assignment("check a == b, then total = 10") == ("total", 10)
        assert parse_assignment("first = 1\nsecond = 2") == ("first", 1)

    def test_parse_assignment_rejects_non_assignments(self):
        assert parse_assignment("") is None
        assert parse_assignment("just a note") is None
        assert parse_assignment("a == b") is None
        assert parse_assignment("x =") is None


# ============================================================
# Condition Evaluator Tests
# ============================================================

class TestConditionEvaluator:
    """Tests for the restricted condition language."""

    def test_greater_than(self):
        assert evaluate_condition("x > 10", {"x": 15}) is True
        assert evaluate_condition("x > 10", {"x": 5}) is False

    def test_less_than(self):
        assert evaluate_condition("x < 10", {"x": 5}) is True
        assert evaluate_condition("x < 10", {"x": 10}) is False

    def test_variables_on_both_sides(self):
        assert evaluate_condition("score > threshold", {"score": 15, "threshold": 10}) is True

    def test_negative_numbers(self):
        assert evaluate_condition("x > -5", {"x": 0}) is True
        assert evaluate_condition("x == -5", {"x": -5}) is True

    def test_string_equality(self):
        assert evaluate_condition('name == "ada"', {"name": "ada"}) is True
        assert evaluate_condition('name == "bob"', {"name": "ada"}) is False
        assert evaluate_condition('name != "bob"', {"name": "ada"}) is True

    def test_boolean_equality(self):
        assert evaluate_condition("flag == true", {"flag": True}) is True
        assert evaluate_condition("flag == true", {"flag": False}) is False

    def test_whole_word_substitution(self):
        """Test a variable is not substituted inside a longer name."""
        assert evaluate_condition("xx > 1", {"x": 5}) is False

    def test_greater_than_takes_priority(self):
        assert evaluate_condition("x == 1 > 0", {"x": 2}) is True

    def test_unrecognized_is_true(self):
        assert evaluate_condition("true", {}) is True
        assert evaluate_condition("", {}) is True
        assert evaluate_condition("hello world", {}) is True
        assert evaluate_condition("x >", {"x": 1}) is True

    def test_non_numeric_comparison_is_false(self):
        assert evaluate_condition("missing > 10", {}) is False
        assert evaluate_condition("x >= 5", {"x": 6}) is False

    def test_error_is_false_and_reported(self):
        """Test a failing evaluation returns False and reports the error."""
        errors: List[str] = []
        result = evaluate_condition("x > 1", {"x": None}, on_error=errors.append)

        assert result is False
        assert len(errors) == 1
        assert errors[0].startswith('Error evaluating condition "x > 1"')

    def test_tokenize_drops_unknown_characters(self):
        tokens = tokenize("x $> 10;")
        assert [t.text for t in tokens] == ["x", ">", "10"]

    def test_parse_number(self):
        assert parse_number("12abc") == 12
        assert parse_number(" 3.5 ") == 3.5
        assert parse_number('"15"') is None


# ============================================================
# Graph Tests
# ============================================================

class TestWorkflowGraph:
    """Tests for WorkflowGraph routing."""

    def test_lookup(self):
        nodes, edges = linear_graph()
        graph = WorkflowGraph.from_lists(nodes, edges)

        assert graph.get_node("a").label == "A"
        assert graph.get_node("ghost") is None
        assert graph.find_start().id == "start"
        assert graph.next_node_id("a") == "b"
        assert graph.next_node_id("end") is None

    def test_branch_target_tagged(self):
        nodes, edges = decision_graph("true")
        # Tagged edges win regardless of order
        edges[1], edges[2] = edges[2], edges[1]
        graph = WorkflowGraph.from_lists(nodes, edges)

        assert graph.branch_target("check", True) == "big"
        assert graph.branch_target("check", False) == "small"

    def test_branch_target_untagged_fallback(self):
        nodes, edges = decision_graph("true", tagged=False)
        graph = WorkflowGraph.from_lists(nodes, edges)

        assert graph.branch_target("check", True) == "big"
        assert graph.branch_target("check", False) == "small"

    def test_branch_target_missing_no_edge(self):
        graph = WorkflowGraph.from_lists(
            [DecisionNode(id="check"), EndNode(id="end")],
            [edge("check", "end")],
        )
        assert graph.branch_target("check", False) is None

    def test_validate(self):
        """Test structural warnings."""
        nodes, edges = linear_graph()
        assert WorkflowGraph.from_lists(nodes, edges).validate() == []

        warnings = WorkflowGraph.from_lists(
            [ProcessNode(id="p"), DecisionNode(id="d")],
            [edge("p", "ghost")],
        ).validate()
        assert "Graph has no start node" in warnings
        assert any("unknown node 'ghost'" in w for w in warnings)
        assert any("Decision node 'd'" in w for w in warnings)

    def test_parse_nodes(self):
        """Test nodes parse from dictionaries by kind."""
        nodes = parse_nodes([
            {"id": "s", "kind": "start"},
            {"id": "d", "kind": "decision", "condition": "x > 1"},
            {"id": "n", "kind": "note", "content": "x = 2"},
        ])
        assert isinstance(nodes[0], StartNode)
        assert isinstance(nodes[1], DecisionNode)
        assert nodes[1].condition == "x > 1"
        assert isinstance(nodes[2], NoteNode)

    def test_decision_default_condition(self):
        assert DecisionNode(id="d").condition == "true"


# ============================================================
# Engine Tests
# ============================================================

class TestExecutionEngine:
    """Tests for the ExecutionEngine."""

    @pytest.mark.asyncio
    async def test_linear_run(self):
        """Test a run walks to the end node and finishes idle."""
        engine = ExecutionEngine(step_delay=0)
        nodes, edges = linear_graph()

        context = await engine.execute_workflow(nodes, edges)

        assert context.execution_path == ["start", "a", "b", "end"]
        assert context.execution_path[-1] == "end"
        assert context.running is False
        assert context.current_node_id is None
        assert context.errors == []

    @pytest.mark.asyncio
    async def test_no_start_node(self):
        """Test a graph without a start node records exactly one error."""
        engine = ExecutionEngine(step_delay=0)
        states: List[ExecutionContext] = []
        engine.subscribe(states.append)

        context = await engine.execute_workflow([ProcessNode(id="p"), EndNode(id="end")], [edge("p", "end")])

        assert context.errors == ["No start node found."]
        assert context.execution_path == []
        assert context.running is False
        assert states[0].running is True
        assert states[-1].running is False

    @pytest.mark.asyncio
    async def test_decision_yes_branch(self):
        engine = ExecutionEngine(step_delay=0)
        engine.set_variable("x", 15)

        context = await engine.execute_workflow(*decision_graph("x > 10"))
        assert context.execution_path == ["start", "check", "big", "end"]

    @pytest.mark.asyncio
    async def test_decision_no_branch(self):
        engine = ExecutionEngine(step_delay=0)
        engine.set_variable("x", 5)

        context = await engine.execute_workflow(*decision_graph("x > 10"))
        assert context.execution_path == ["start", "check", "small", "end"]

    @pytest.mark.asyncio
    async def test_decision_untagged_fallback(self):
        """Test untagged decision edges fall back to first/second edge."""
        engine = ExecutionEngine(step_delay=0)
        nodes, edges = decision_graph("x > 10", tagged=False)

        engine.set_variable("x", 15)
        context = await engine.execute_workflow(nodes, edges)
        assert context.execution_path == ["start", "check", "big", "end"]

        engine.set_variable("x", 5)
        context = await engine.execute_workflow(nodes, edges)
        assert context.execution_path == ["start", "check", "small", "end"]

    @pytest.mark.asyncio
    async def test_decision_trace(self):
        engine = ExecutionEngine(step_delay=0)
        engine.set_variable("x", 15)
        await engine.execute_workflow(*decision_graph("x > 10"))

        history = engine.get_execution_history()
        assert [s.action for s in history] == ["start", "decision", "process", "end"]
        assert history[1].input == {"condition": "x > 10"}
        assert history[1].output == {"result": True, "condition": "x > 10"}
        assert history[2].output == {"message": "Processed: Big"}

    @pytest.mark.asyncio
    async def test_note_assignments(self):
        """Test note nodes write typed variables."""
        engine = ExecutionEngine(step_delay=0)
        nodes = [
            StartNode(id="start"),
            NoteNode(id="count", content="count = 3"),
            NoteNode(id="flag", content="flag = true"),
            NoteNode(id="name", content='name = "Ada"'),
            EndNode(id="end"),
        ]
        edges = [edge("start", "count"), edge("count", "flag"), edge("flag", "name"), edge("name", "end")]

        await engine.execute_workflow(nodes, edges)

        count = engine.get_variable("count")
        assert count.value == 3
        assert count.kind == VariableKind.NUMBER
        assert engine.get_variable("flag").value is True
        assert engine.get_variable("flag").kind == VariableKind.BOOLEAN
        assert engine.get_variable("name").value == "Ada"

        note_step = engine.get_execution_history()[1]
        assert note_step.action == "note"
        assert note_step.output["variable"] == {"name": "count", "value": 3}

    @pytest.mark.asyncio
    async def test_note_drives_decision(self):
        engine = ExecutionEngine(step_delay=0)
        nodes, edges = decision_graph("x > 10")
        nodes.insert(1, NoteNode(id="set-x", content="x = 20"))
        edges[0] = edge("start", "set-x")
        edges.append(edge("set-x", "check"))

        context = await engine.execute_workflow(nodes, edges)
        assert context.execution_path == ["start", "set-x", "check", "big", "end"]

    @pytest.mark.asyncio
    async def test_file_and_shape_trace(self):
        engine = ExecutionEngine(step_delay=0)
        nodes = [
            StartNode(id="start"),
            FileNode(id="f", label="notes.txt", content="hello"),
            ShapeNode(id="s", label="Box", shape="circle", color="#fff"),
            EndNode(id="end"),
        ]
        edges = [edge("start", "f"), edge("f", "s"), edge("s", "end")]

        await engine.execute_workflow(nodes, edges)

        history = engine.get_execution_history()
        assert history[1].output == {"filename": "notes.txt", "content": "hello"}
        assert history[2].output == {"message": "Shape: Box", "shape": "circle", "color": "#fff"}

    @pytest.mark.asyncio
    async def test_end_node_stops_branch(self):
        """Test the end node terminates even with outgoing edges."""
        engine = ExecutionEngine(step_delay=0)
        nodes = [StartNode(id="start"), EndNode(id="end"), ProcessNode(id="after")]
        edges = [edge("start", "end"), edge("end", "after")]

        context = await engine.execute_workflow(nodes, edges)
        assert context.execution_path == ["start", "end"]

    @pytest.mark.asyncio
    async def test_missing_node_ends_branch(self):
        """Test a dangling edge records an error but the run still completes."""
        engine = ExecutionEngine(step_delay=0)
        context = await engine.execute_workflow(
            [StartNode(id="start")],
            [edge("start", "ghost")],
        )

        assert context.execution_path == ["start"]
        assert context.errors == ["Node ghost not found"]
        assert context.running is False

    @pytest.mark.asyncio
    async def test_condition_error_follows_no_branch(self):
        engine = ExecutionEngine(step_delay=0)
        engine.set_variable("x", None)

        context = await engine.execute_workflow(*decision_graph("x > 10"))

        assert context.execution_path == ["start", "check", "small", "end"]
        assert len(context.errors) == 1
        assert context.errors[0].startswith("Error evaluating condition")

    @pytest.mark.asyncio
    async def test_invalid_node_is_recorded(self):
        """Test bad input is reported as an execution error, not raised."""
        engine = ExecutionEngine(step_delay=0)
        context = await engine.execute_workflow([{"id": "x", "kind": "code"}], [])

        assert len(context.errors) == 1
        assert context.errors[0].startswith("Execution error:")
        assert context.running is False

    @pytest.mark.asyncio
    async def test_dict_input(self):
        engine = ExecutionEngine(step_delay=0)
        context = await engine.execute_workflow(
            [{"id": "s", "kind": "start"}, {"id": "e", "kind": "end"}],
            [{"id": "e1", "source": "s", "target": "e"}],
        )
        assert context.execution_path == ["s", "e"]

    @pytest.mark.asyncio
    async def test_cycle_hits_step_budget(self):
        engine = ExecutionEngine(step_delay=0, max_steps=5)
        nodes = [StartNode(id="start"), ProcessNode(id="a"), ProcessNode(id="b")]
        edges = [edge("start", "a"), edge("a", "b"), edge("b", "a")]

        context = await engine.execute_workflow(nodes, edges)

        assert len(context.execution_path) == 5
        assert context.errors == ["Cycle detected: step budget of 5 exceeded at node a"]
        assert context.running is False

    @pytest.mark.asyncio
    async def test_step_budget_counts_acyclic_visits(self):
        """Test a graph longer than the budget ends even without a cycle."""
        context, history = await run_workflow(*linear_graph(), step_delay=0, max_steps=2)

        assert context.execution_path == ["start", "a"]
        assert context.errors == ["Cycle detected: step budget of 2 exceeded at node b"]
        assert [step.node_id for step in history] == ["start", "a"]

        context, _ = await run_workflow(*linear_graph(), step_delay=0, max_steps=0)
        assert context.execution_path == ["start", "a", "b", "end"]
        assert context.errors == []

    @pytest.mark.asyncio
    async def test_variables_persist_across_runs(self):
        """Test a new run keeps variables but clears path, errors and trace."""
        engine = ExecutionEngine(step_delay=0)
        engine.set_variable("kept", 1)
        await engine.execute_workflow([StartNode(id="start")], [edge("start", "ghost")])

        context = await engine.execute_workflow(*linear_graph())

        assert engine.get_variable("kept").value == 1
        assert context.errors == []
        assert context.execution_path == ["start", "a", "b", "end"]
        assert len(engine.get_execution_history()) == 4

    @pytest.mark.asyncio
    async def test_reset(self):
        """Test reset returns the context to its initial shape."""
        engine = ExecutionEngine(step_delay=0)
        engine.set_variable("x", 1)
        await engine.execute_workflow(*linear_graph())

        engine.reset()
        context = engine.get_context()

        assert context.variables == {}
        assert context.current_node_id is None
        assert context.execution_path == []
        assert context.errors == []
        assert context.running is False
        assert engine.get_execution_history() == []

    @pytest.mark.asyncio
    async def test_reset_cancels_in_flight_run(self):
        """Test a reset run makes no further changes to the context."""
        engine = ExecutionEngine(step_delay=0.05)
        nodes = [
            StartNode(id="start"),
            NoteNode(id="set", content="x = 1"),
            ProcessNode(id="a"),
            EndNode(id="end"),
        ]
        edges = [edge("start", "set"), edge("set", "a"), edge("a", "end")]

        def reset_at_start(context):
            if context.current_node_id == "start":
                engine.reset()

        unsubscribe = engine.subscribe(reset_at_start)
        task = asyncio.create_task(engine.execute_workflow(nodes, edges))
        await asyncio.wait_for(task, timeout=0.5)
        unsubscribe()

        await asyncio.sleep(0.15)
        context = engine.get_context()
        assert context.execution_path == []
        assert context.variables == {}
        assert context.running is False
        assert context.errors == []
        assert engine.get_execution_history() == []

    @pytest.mark.asyncio
    async def test_pause_and_resume(self):
        """Test pausing halts path growth until resume."""
        engine = ExecutionEngine(step_delay=0.01)

        def pause_at_a(context):
            if context.current_node_id == "a" and not context.paused:
                engine.pause()

        unsubscribe = engine.subscribe(pause_at_a)
        task = asyncio.create_task(engine.execute_workflow(*linear_graph()))
        await asyncio.sleep(0.1)

        context = engine.get_context()
        assert context.execution_path == ["start", "a"]
        assert context.paused is True
        assert context.running is True

        unsubscribe()
        engine.resume()
        context = await asyncio.wait_for(task, timeout=1)

        assert context.execution_path == ["start", "a", "b", "end"]

    @pytest.mark.asyncio
    async def test_stop_cancels_traversal(self):
        """Test stop ends the traversal without further changes."""
        engine = ExecutionEngine(step_delay=0.5)
        task = asyncio.create_task(engine.execute_workflow(*linear_graph()))
        await asyncio.sleep(0.05)

        engine.stop()
        context = await asyncio.wait_for(task, timeout=0.3)

        assert context.running is False
        assert context.current_node_id is None
        assert context.execution_path == ["start"]
        assert engine.get_execution_history() == []

    @pytest.mark.asyncio
    async def test_stop_while_paused(self):
        engine = ExecutionEngine(step_delay=0)

        def pause_at_start(context):
            if context.current_node_id == "start" and not context.paused:
                engine.pause()

        engine.subscribe(pause_at_start)
        task = asyncio.create_task(engine.execute_workflow(*linear_graph()))
        await asyncio.sleep(0.05)
        assert engine.get_context().paused is True

        engine.stop()
        context = await asyncio.wait_for(task, timeout=0.5)

        assert context.running is False
        assert context.paused is False
        assert context.execution_path == ["start"]

    @pytest.mark.asyncio
    async def test_concurrent_run_rejected(self):
        engine = ExecutionEngine(step_delay=0.2)
        task = asyncio.create_task(engine.execute_workflow(*linear_graph()))
        await asyncio.sleep(0.01)

        with pytest.raises(EngineBusyError):
            await engine.execute_workflow(*linear_graph())

        engine.stop()
        await task

    @pytest.mark.asyncio
    async def test_run_after_stop_waits_for_cancelled_run(self):
        engine = ExecutionEngine(step_delay=0.5)
        task = asyncio.create_task(engine.execute_workflow(*linear_graph()))
        await asyncio.sleep(0.05)

        engine.stop()
        engine.step_delay = 0
        context = await asyncio.wait_for(engine.execute_workflow(*linear_graph()), timeout=1)

        assert task.done()
        assert context.execution_path == ["start", "a", "b", "end"]

    @pytest.mark.asyncio
    async def test_subscribers(self):
        """Test listeners receive snapshots and can unsubscribe."""
        engine = ExecutionEngine(step_delay=0)
        seen: List[ExecutionContext] = []

        def broken(context):
            raise RuntimeError("listener failure")

        engine.subscribe(broken)
        unsubscribe = engine.subscribe(seen.append)
        await engine.execute_workflow(*linear_graph())

        entered = [c.current_node_id for c in seen if c.current_node_id]
        assert entered == ["start", "a", "b", "end"]
        assert seen[-1].running is False

        unsubscribe()
        count = len(seen)
        engine.pause()
        assert len(seen) == count

    @pytest.mark.asyncio
    async def test_subscribers_see_variable_writes(self):
        """Test note assignments and direct writes notify listeners."""
        engine = ExecutionEngine(step_delay=0)
        seen: List[ExecutionContext] = []
        engine.subscribe(seen.append)
        nodes = [StartNode(id="start"), NoteNode(id="set", content="x = 1"), EndNode(id="end")]
        edges = [edge("start", "set"), edge("set", "end")]

        await engine.execute_workflow(nodes, edges)

        at_note = [c for c in seen if c.current_node_id == "set"]
        assert "x" not in at_note[0].variables
        assert at_note[-1].variables["x"].value == 1

        count = len(seen)
        engine.set_variable("y", 2)
        assert len(seen) == count + 1
        assert seen[-1].variables["y"].value == 2
        assert seen[-1].variables["y"].kind == "number"

    @pytest.mark.asyncio
    async def test_snapshots_are_copies(self):
        engine = ExecutionEngine(step_delay=0)
        context = engine.get_context()
        context.errors.append("tampered")
        assert engine.get_context().errors == []

    @pytest.mark.asyncio
    async def test_replay_on_fresh_engine(self):
        """Test the same graph and variables reproduce the same path."""
        nodes, edges = decision_graph("x < 10")

        first, _ = await run_workflow(nodes, edges, variables={"x": 3}, step_delay=0)
        second, _ = await run_workflow(nodes, edges, variables={"x": 3}, step_delay=0)

        assert first.execution_path == second.execution_path
        assert first.execution_path == ["start", "check", "big", "end"]


# ============================================================
# Integration Tests
# ============================================================

class TestSampleWorkflows:
    """Integration tests for the bundled sample workflows."""

    @pytest.mark.asyncio
    async def test_threshold_review_approves(self):
        from canvasflow.workflows.samples import create_threshold_review_workflow

        workflow = create_threshold_review_workflow(score=15, threshold=10)
        context, history = await run_workflow(workflow.nodes, workflow.edges, step_delay=0)

        assert context.execution_path[-1] == "end"
        assert "approve" in context.execution_path
        assert context.variables["score"].value == 15
        assert context.errors == []

    @pytest.mark.asyncio
    async def test_threshold_review_rework(self):
        from canvasflow.workflows.samples import create_threshold_review_workflow

        workflow = create_threshold_review_workflow(score=4, threshold=10)
        context, history = await run_workflow(workflow.nodes, workflow.edges, step_delay=0)

        assert "rework" in context.execution_path
        assert history[-2].action == "file"

    @pytest.mark.asyncio
    async def test_release_checklist(self):
        from canvasflow.workflows.samples import create_release_checklist_workflow

        workflow = create_release_checklist_workflow()
        context, _ = await run_workflow(workflow.nodes, workflow.edges, step_delay=0)

        assert context.execution_path == ["start", "build", "notes", "status", "mark", "end"]
        assert context.variables["released"].value is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
