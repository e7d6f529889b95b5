"""
Instruction table tests.

The standard table is built fresh per call and frozen; custom dialects
get a mutable copy through extend().
"""

import types

import pytest

from funge98_vm import FungeEmulator
from funge98_vm.cpu.table import (
    Instruction, InstructionTable, TableFrozenError, instruction,
)
from funge98_vm.cpu.standard import build_standard_table
from funge98_vm.ip.pointer import InstructionPointer
from funge98_vm.mem.space import FungeSpace
from funge98_vm.vector import EAST, WEST


@pytest.fixture
def table():
    return build_standard_table()


# ─── Standard table ───────────────────────

class TestStandardTable:
    @pytest.mark.parametrize("char,value", list(zip('0123456789abcdef', range(16))))
    def test_each_literal_pushes_its_own_value(self, table, char, value):
        ip = InstructionPointer()
        table[char].execute(ip, FungeSpace(), None)
        assert list(ip.stack) == [value]

    def test_built_frozen(self, table):
        assert table.frozen
        with pytest.raises(TableFrozenError):
            table.register('Z', lambda ip, space, vm: ip)
        with pytest.raises(TableFrozenError):
            table.unregister('@')

    def test_each_call_builds_a_new_table(self):
        a = build_standard_table()
        b = build_standard_table()
        assert a is not b
        custom = a.extend()
        custom.unregister('@')
        assert '@' in a
        assert '@' in b
        assert '@' not in custom

    def test_unknown_code_has_no_entry(self, table):
        assert table.lookup(0x263A) is None
        assert table.lookup(-1) is None

    def test_stacked_registrations_get_their_own_names(self, table):
        assert table['>'].name == 'go_east'
        assert table['|'].name == 'north_south_if'
        assert table['+'].name == 'add'
        assert table['+'].handler is table['*'].handler

    def test_uppercase_letters_reflect(self, table):
        ip = InstructionPointer()
        table['Q'].execute(ip, FungeSpace(), None)
        assert ip.delta == WEST

    @pytest.mark.parametrize("char", list("()iohlm="))
    def test_unimplemented_instructions_are_registered(self, table, char):
        assert char in table

    def test_iteration_is_ordered_by_code(self, table):
        codes = [entry.code for entry in table]
        assert codes == sorted(codes)
        assert len(codes) == len(table)


# ─── Custom tables ────────────────────────

class TestCustomTable:
    def test_register_and_lookup(self):
        table = InstructionTable('tiny')
        entry = table.register('@', lambda ip, space, vm: None, name='halt')
        assert isinstance(entry, Instruction)
        assert table.lookup(ord('@')) is entry
        assert entry.code == ord('@')
        assert len(table) == 1

    def test_register_replaces(self):
        table = InstructionTable()
        table.register('x', lambda ip, space, vm: ip, name='first')
        table.register('x', lambda ip, space, vm: ip, name='second')
        assert table['x'].name == 'second'
        assert len(table) == 1

    def test_multi_char_key_rejected(self):
        with pytest.raises(ValueError):
            InstructionTable().register('ab', lambda ip, space, vm: ip)

    def test_integer_keys(self):
        table = InstructionTable()
        table.register(0x263A, lambda ip, space, vm: ip, name='smiley')
        assert table.lookup(0x263A).name == 'smiley'

    def test_register_module_collects_decorated_handlers(self):
        @instruction('a', 10, name='ten')
        @instruction('b', 11, name='eleven')
        def push(ip, space, vm, value):
            ip.stack.push(value)
            return ip

        def helper(ip, space, vm):
            return ip

        module = types.SimpleNamespace(push=push, helper=helper)
        table = InstructionTable().register_module(module)
        assert len(table) == 2
        assert table['a'].args == (10,)
        assert table['b'].args == (11,)
        assert table['b'].name == 'eleven'

    def test_extended_table_runs_in_emulator(self):
        def greet(ip, space, vm):
            vm.emit_text("hi")
            return ip

        table = build_standard_table().extend('greeting')
        table.register('Z', greet)
        vm = FungeEmulator(table=table.freeze())
        vm.load_source("Z@")
        vm.run()
        assert vm.output == "hi"

    def test_override_leaves_standard_table_alone(self):
        table = build_standard_table().extend()
        table.register('>', lambda ip, space, vm: ip, name='stuck')
        ip = InstructionPointer(delta=WEST)
        build_standard_table()['>'].execute(ip, FungeSpace(), None)
        assert ip.delta == EAST

    def test_repr_shows_state(self):
        table = InstructionTable('demo')
        assert 'open' in repr(table)
        table.freeze()
        assert 'frozen' in repr(table)
