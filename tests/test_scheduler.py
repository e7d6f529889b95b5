"""
Scheduler tests: tick accounting, concurrency order, termination.
"""

from funge98_vm import FungeEmulator, StopReason, VMConfig, run_source
from funge98_vm.ip.pointer import InstructionPointer
from funge98_vm.vector import Vector, EAST, WEST


def make_vm(source, **config):
    vm = FungeEmulator(config=VMConfig(**config))
    vm.load_source(source)
    return vm


# ─── Single IP ────────────────────────────

class TestSingleIP:
    def test_runs_to_completion(self):
        vm = make_vm("12+,@")
        assert vm.run() is StopReason.DONE
        assert vm.output == "\x03"
        assert vm.tick_count == 5
        assert vm.ips == []
        assert vm.stop_reason is StopReason.DONE

    def test_stop_immediately(self):
        vm = make_vm("@")
        assert vm.run() is StopReason.DONE
        assert vm.tick_count == 1

    def test_ip_moves_after_each_instruction(self):
        vm = make_vm("0_@")
        vm.tick()
        vm.tick()
        ip = vm.ips[0]
        assert ip.location == Vector(2, 0)
        assert ip.delta == EAST

    def test_wraps_at_row_end(self):
        vm = make_vm("1.")
        vm.run(max_ticks=4)
        assert vm.output == "1 1 "
        assert vm.ips[0].location == Vector(0, 0)

    def test_spaces_cost_a_tick(self):
        vm = make_vm("1   .@")
        vm.run()
        assert vm.tick_count == 6
        assert vm.output == "1 "

    def test_free_markers_skip_spaces_and_jumps(self):
        vm = make_vm("1   .@", free_markers=True)
        vm.run()
        assert vm.tick_count == 3
        assert vm.output == "1 "
        vm = make_vm("1 ;xx; .@", free_markers=True)
        vm.run()
        assert vm.tick_count == 3
        assert vm.output == "1 "


# ─── Concurrency ──────────────────────────

class TestConcurrency:
    def test_split_creates_reversed_child(self):
        vm = make_vm("t1.@")
        vm.tick()
        assert [ip.id for ip in vm.ips] == [0, 1]
        child = vm.ips[1]
        assert child.parent_id == 0
        assert child.delta == WEST
        assert child.location == Vector(3, 0)

    def test_child_starts_next_tick(self):
        vm = make_vm("t1.@")
        assert vm.run() is StopReason.DONE
        assert vm.output == "1 "
        assert vm.tick_count == 4

    def test_child_gets_copy_of_stack(self):
        vm = make_vm("5t.@")
        vm.tick()
        vm.tick()
        parent, child = vm.ips
        assert list(child.stack) == [5]
        parent.stack.push(9)
        assert list(child.stack) == [5]
        assert list(parent.stack) == [5, 9]

    def test_ips_run_in_id_order_within_a_tick(self):
        assert run_source("t'A,@@,B'").output == "AB"

    def test_write_visible_to_later_ip_in_same_tick(self):
        vm = make_vm("p   ")
        vm.ips[0].stack.extend([ord('@'), 3, 0])
        late = InstructionPointer(vm.next_ip_id(), location=(3, 0))
        vm.ips.append(late)
        assert vm.tick() is None
        assert [ip.id for ip in vm.ips] == [0]
        assert vm.space.read((3, 0)) == ord('@')

    def test_ids_are_never_reused(self):
        vm = make_vm("t@")
        vm.run()
        vm.load_source("t@")
        vm.ips.append(InstructionPointer(vm.next_ip_id()))
        vm.tick()
        ids = [ip.id for ip in vm.ips]
        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)
        assert ids[-1] == 3


# ─── Termination ──────────────────────────

class TestTermination:
    def test_quit_sets_exit_code(self):
        vm = make_vm("25*q")
        assert vm.run() is StopReason.QUIT
        assert vm.exit_code == 10
        assert vm.tick_count == 4
        assert vm.ips == []

    def test_quit_stops_other_ips_in_same_tick(self):
        vm = make_vm("q.")
        vm.ips[0].stack.push(3)
        vm.ips.append(InstructionPointer(vm.next_ip_id(), location=(1, 0)))
        assert vm.run() is StopReason.QUIT
        assert vm.exit_code == 3
        assert vm.output == ""

    def test_tick_limit(self):
        vm = make_vm(">")
        assert vm.run(max_ticks=10) is StopReason.TIMEOUT
        assert vm.tick_count == 10
        assert vm.stop_reason is StopReason.TIMEOUT
        assert vm.alive

    def test_tick_limit_from_config(self):
        vm = make_vm(">", max_ticks=7)
        assert vm.run() is StopReason.TIMEOUT
        assert vm.tick_count == 7

    def test_run_can_resume_after_timeout(self):
        vm = make_vm("1111@")
        assert vm.run(max_ticks=2) is StopReason.TIMEOUT
        assert vm.run() is StopReason.DONE
        assert vm.tick_count == 5

    def test_tick_on_finished_vm(self):
        vm = make_vm("@")
        vm.run()
        assert vm.tick() is StopReason.DONE
        assert vm.tick_count == 1


# ─── Breakpoints / trace / reset ──────────

class TestDebugging:
    def test_breakpoint_stops_before_cell(self):
        vm = make_vm("123@")
        vm.add_breakpoint((2, 0))
        assert vm.run() is StopReason.BREAK
        assert vm.tick_count == 2
        assert list(vm.ips[0].stack) == [1, 2]
        assert vm.run() is StopReason.DONE
        assert vm.tick_count == 4

    def test_breakpoint_removal(self):
        vm = make_vm("123@")
        vm.add_breakpoint((2, 0))
        vm.remove_breakpoint((2, 0))
        assert vm.run() is StopReason.DONE

    def test_trace_records_each_instruction(self):
        vm = make_vm("1@")
        vm.enable_trace()
        vm.run()
        lines = vm.get_trace().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("t0")
        assert "IP0" in lines[0]
        assert lines[0].endswith("exec 1")
        vm.clear_trace()
        assert vm.get_trace() == ""

    def test_trace_from_config(self):
        vm = make_vm("@", trace=True)
        vm.run()
        assert "exec @" in vm.get_trace()

    def test_reset_keeps_space(self):
        vm = make_vm("5.@")
        vm.run()
        vm.reset()
        assert vm.tick_count == 0
        assert vm.output == ""
        assert vm.stop_reason is None
        assert [ip.id for ip in vm.ips] == [0]
        assert vm.run() is StopReason.DONE
        assert vm.output == "5 "

    def test_unknown_instruction_warned_once(self):
        vm = make_vm("☺☺@")
        vm.run()
        assert vm._warned == {0x263A}
