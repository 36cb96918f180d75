"""
Unit tests for StepChains core components.
"""

import asyncio
import inspect
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from stepchains import (
    Context,
    ExitMarker,
    FunctionStep,
    InvalidExitPayloadError,
    InvalidStepError,
    InvalidStepResultError,
    Process,
    ProcessAlreadyStartedError,
    Result,
    Step,
    Switch,
    exit,
    flatten,
    is_exit,
    noop,
    steps,
    switch,
)


# Test Steps
def set_x(context):
    return {'x': 1}


def set_y(context):
    return {'y': 2}


def set_z(context):
    return {'z': 3}


def read_x(context):
    return {'x_plus_one': context['x'] + 1}


def stop(context):
    return exit


def stop_with_reason(context):
    return exit({'reason': 'x'})


def fail(context):
    raise ValueError("Intentional failure")


async def async_set_y(context):
    await asyncio.sleep(0)
    return {'y': 2}


class IncrementStep(Step):
    def execute(self, context):
        return {'counter': context.get('counter', 0) + 1}


# Tests
def test_context():
    print("Testing Context...")

    context = Context({'key': 'value'})
    assert context['key'] == 'value'
    assert context.get('missing') is None
    assert context.get('missing', 'default') == 'default'
    assert context.has('key')
    assert not context.has('missing')
    assert len(context) == 1

    copy = context.to_dict()
    copy['key'] = 'changed'
    assert context['key'] == 'value'

    try:
        context['key'] = 'changed'
    except TypeError:
        pass
    else:
        raise AssertionError("Context should be read-only")

    print("  ✓ Context tests passed")


def test_exit_signal():
    print("Testing exit signal...")

    assert is_exit(exit)
    assert dict(exit.payload) == {}

    marker = exit({'reason': 'x'})
    assert is_exit(marker)
    assert isinstance(marker, ExitMarker)
    assert dict(marker.payload) == {'reason': 'x'}
    assert dict(exit(reason='x', code=2).payload) == {'reason': 'x', 'code': 2}

    assert not is_exit({'x': 1})
    assert not is_exit(None)

    for bad_payload in (42, 'reason', ['reason']):
        try:
            exit(bad_payload)
        except InvalidExitPayloadError as e:
            assert isinstance(e, TypeError)
        else:
            raise AssertionError(f"exit({bad_payload!r}) should fail")

    print("  ✓ Exit signal tests passed")


def test_result():
    print("Testing Result...")

    completed = Result({'x': 1})
    assert completed == {'x': 1}
    assert completed.is_completed()
    assert not completed.is_exited()

    exited = Result({'x': 1}, exited=True)
    assert exited.exited
    assert exited.is_exited()
    assert 'exited' not in exited
    assert list(exited.keys()) == ['x']
    assert type(exited.to_dict()) is dict

    print("  ✓ Result tests passed")


def test_flatten():
    print("Testing flatten...")

    branch = switch('k', {'a': set_x})
    nested = Process(set_y, [set_z])
    flat = flatten([set_x, [[read_x], nested], branch])

    assert [step.name for step in flat] == ['set_x', 'read_x', 'set_y', 'set_z', "switch('k')"]
    assert isinstance(flat[0], FunctionStep)
    assert isinstance(flat[-1], Switch)
    assert flat[2] is nested.steps[0]

    class_step = IncrementStep()
    assert flatten([class_step]) == (class_step,)

    # Invalid steps are only rejected when invoked
    assert len(flatten([42])) == 1

    print("  ✓ Flatten tests passed")


def test_step_names():
    print("Testing step names...")

    def local_step(context):
        return None

    async def local_async():
        return None

    pending = local_async()
    try:
        names = [step.name for step in flatten([local_step, pending, IncrementStep(), exit])]
    finally:
        pending.close()

    assert names == ['local_step', 'local_async', 'IncrementStep', 'exit']

    print("  ✓ Step names passed")


def test_unreached_coroutines_are_closed():
    print("Testing unreached coroutine steps...")

    async def pending_step():
        return {'never': True}

    after_exit = pending_step()
    result = Process(set_x, stop, after_exit).execute()

    assert result == {'x': 1}
    assert inspect.getcoroutinestate(after_exit) == inspect.CORO_CLOSED

    after_failure = pending_step()
    try:
        Process(fail, [after_failure]).execute()
    except ValueError:
        pass
    else:
        raise AssertionError("Failure should propagate")

    assert inspect.getcoroutinestate(after_failure) == inspect.CORO_CLOSED

    print("  ✓ Unreached coroutine steps passed")


def test_process_basic():
    print("Testing Process basic execution...")

    result = Process(set_x, set_y).execute({'z': 0})

    assert result == {'z': 0, 'x': 1, 'y': 2}
    assert not result.exited

    print("  ✓ Process basic execution passed")


def test_later_results_overwrite():
    print("Testing result overwrite...")

    def set_x_again(context):
        return {'x': 'second'}

    result = Process(set_x, set_x_again).execute({'x': 'input'})

    assert result == {'x': 'second'}

    print("  ✓ Result overwrite passed")


def test_context_data_flow():
    print("Testing context data flow...")

    seen = []

    def record(context):
        seen.append(dict(context))

    result = Process(set_x, record, read_x, record).execute({'input': True})

    assert seen == [
        {'input': True, 'x': 1},
        {'input': True, 'x': 1, 'x_plus_one': 2},
    ]
    assert result['x_plus_one'] == 2

    print("  ✓ Context data flow passed")


def test_input_is_not_mutated():
    print("Testing input isolation...")

    data = {'z': 0}
    result = Process(set_x).execute(data)

    assert data == {'z': 0}
    assert result == {'z': 0, 'x': 1}

    print("  ✓ Input isolation passed")


def test_grouping_has_no_effect():
    print("Testing grouping...")

    flat = Process(set_x, set_y, set_z).execute()
    grouped = Process([set_x, set_y], set_z).execute()
    nested = Process([[set_x], [set_y, set_z]]).execute()
    with_process = Process(Process(set_x, set_y), (set_z,)).execute()

    assert flat == grouped == nested == with_process == {'x': 1, 'y': 2, 'z': 3}

    print("  ✓ Grouping passed")


def test_exit_short_circuits():
    print("Testing exit short-circuit...")

    result = Process(set_x, stop, set_y).execute()

    assert result == {'x': 1}
    assert 'y' not in result
    assert result.exited

    direct = Process(set_x, exit, set_y).execute()
    assert direct == {'x': 1}
    assert direct.exited

    print("  ✓ Exit short-circuit passed")


def test_exit_with_payload():
    print("Testing exit with payload...")

    result = Process(set_x, stop_with_reason, set_y).execute({'z': 0})

    assert result == {'z': 0, 'x': 1, 'reason': 'x'}
    assert result.exited

    print("  ✓ Exit with payload passed")


def test_exit_in_nested_process():
    print("Testing exit from nested process...")

    inner = Process(set_y, stop, set_z)
    result = Process(set_x, [inner], read_x).execute()

    assert result == {'x': 1, 'y': 2}
    assert result.exited

    print("  ✓ Exit from nested process passed")


def test_noop():
    print("Testing noop...")

    result = Process(set_x, noop, Process.noop, set_y).execute()

    assert result == {'x': 1, 'y': 2}
    assert not result.exited
    assert Process.exit is exit

    print("  ✓ Noop passed")


def test_class_based_steps():
    print("Testing class-based steps...")

    result = Process(IncrementStep(), IncrementStep(), IncrementStep()).execute()

    assert result == {'counter': 3}

    print("  ✓ Class-based steps passed")


def test_async_steps_run_in_order():
    print("Testing async step ordering...")

    order = []

    async def slow(context):
        await asyncio.sleep(0.02)
        order.append('slow')
        return {'slow': True}

    def fast(context):
        order.append('fast')
        return {'saw_slow': context.get('slow', False)}

    async def pending():
        order.append('pending')
        return {'pending': True}

    result = Process(slow, fast, async_set_y, pending()).execute()

    assert order == ['slow', 'fast', 'pending']
    assert result == {'slow': True, 'saw_slow': True, 'y': 2, 'pending': True}

    print("  ✓ Async step ordering passed")


def test_step_failure_propagates():
    print("Testing step failure propagation...")

    after = []

    def never(context):
        after.append(True)

    try:
        Process(set_x, fail, never).execute()
    except ValueError as e:
        assert str(e) == "Intentional failure"
    else:
        raise AssertionError("Failure should propagate")

    assert after == []

    print("  ✓ Step failure propagation passed")


def test_async_failure_propagates():
    print("Testing async failure propagation...")

    error = KeyError('missing')

    async def reject(context):
        raise error

    try:
        Process(set_x, reject).execute()
    except KeyError as e:
        assert e is error
    else:
        raise AssertionError("Rejection should propagate")

    print("  ✓ Async failure propagation passed")


def test_invalid_step():
    print("Testing invalid step...")

    process = Process(set_x, 42)
    assert process.step_count() == 2

    try:
        process.execute()
    except InvalidStepError:
        pass
    else:
        raise AssertionError("Invalid step should fail when invoked")

    print("  ✓ Invalid step passed")


def test_invalid_step_result():
    print("Testing invalid step result...")

    def returns_number(context):
        return 5

    try:
        Process(returns_number).execute()
    except InvalidStepResultError as e:
        assert 'returns_number' in str(e)
    else:
        raise AssertionError("Non-mapping result should fail")

    print("  ✓ Invalid step result passed")


def test_invalid_input():
    print("Testing invalid input...")

    try:
        Process(set_x).execute(['not', 'a', 'mapping'])
    except TypeError:
        pass
    else:
        raise AssertionError("Non-mapping input should fail")

    print("  ✓ Invalid input passed")


def test_process_cannot_be_restarted():
    print("Testing restart guard...")

    process = Process(set_x)
    assert process.execute() == {'x': 1}

    try:
        process.execute()
    except ProcessAlreadyStartedError as e:
        assert isinstance(e, RuntimeError)
    else:
        raise AssertionError("Second start should fail")

    print("  ✓ Restart guard passed")


def test_steps_shortcut():
    print("Testing steps shortcut...")

    run = steps(set_x, [set_y])

    first = asyncio.run(run({'z': 0}))
    second = asyncio.run(run())

    assert first == {'z': 0, 'x': 1, 'y': 2}
    assert second == {'x': 1, 'y': 2}

    print("  ✓ Steps shortcut passed")


def test_process_repr():
    print("Testing Process repr...")

    assert repr(Process(set_x, [set_y])) == "Process(steps=2, middleware=0)"
    assert repr(Process(set_x, name='checkout')) == "Process(name='checkout', steps=1, middleware=0)"

    print("  ✓ Process repr passed")


def run_all_tests():
    print("=" * 60)
    print("Running StepChains Tests")
    print("=" * 60)
    print()

    tests = [
        test_context,
        test_exit_signal,
        test_result,
        test_flatten,
        test_step_names,
        test_unreached_coroutines_are_closed,
        test_process_basic,
        test_later_results_overwrite,
        test_context_data_flow,
        test_input_is_not_mutated,
        test_grouping_has_no_effect,
        test_exit_short_circuits,
        test_exit_with_payload,
        test_exit_in_nested_process,
        test_noop,
        test_class_based_steps,
        test_async_steps_run_in_order,
        test_step_failure_propagates,
        test_async_failure_propagates,
        test_invalid_step,
        test_invalid_step_result,
        test_invalid_input,
        test_process_cannot_be_restarted,
        test_steps_shortcut,
        test_process_repr,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except AssertionError as e:
            print(f"  ✗ Test failed: {e}")
            failed += 1
        except Exception as e:
            print(f"  ✗ Test error: {e}")
            failed += 1

    print()
    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
