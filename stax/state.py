from typing import Dict, List, Optional

from stax.errors import runtime_error
from stax.types import Value, VALUE_TYPES, to_string, type_name


class ExecutionState:
    """The operand stack and variable bindings of a single run.

    One instance is created per run and handed to every execute/evaluate
    call; nothing else holds on to it.
    """
    def __init__(self):
        self.stack: List[Value] = []
        self.locals: Dict[str, Value] = {}

    def push(self, value: Value):
        if not isinstance(value, VALUE_TYPES):
            raise TypeError(f"refusing to push non-Stax value {value!r}")
        self.stack.append(value)

    def pop(self) -> Value:
        if not self.stack:
            raise runtime_error('StackUnderflow', 'cannot pop from an empty stack')
        return self.stack.pop()

    def peek(self) -> Value:
        if not self.stack:
            raise runtime_error('StackUnderflow', 'cannot read the top of an empty stack')
        return self.stack[-1]

    def set_local(self, name: str, value: Value):
        self.locals[name] = value

    def get_local(self, name: str) -> Value:
        if name not in self.locals:
            raise runtime_error('UnknownVariable', f'local {name} does not exist, please set it first')
        return self.locals[name]

    def remove_local(self, name: str) -> Optional[Value]:
        return self.locals.pop(name, None)

    def describe_stack(self) -> str:
        return '[' + ', '.join(f"{type_name(v)} {to_string(v)}" for v in self.stack) + ']'
