"""Tracking of preprocessor conditionals while includes are expanded."""
import re

DIRECTIVE_PATTERN = re.compile(r'^\s*#\s*(\w+)\b(.*)$')
TOKEN_PATTERN = re.compile(
    r'\s*(0[xX][0-9a-fA-F]+|\d+|[A-Za-z_]\w*|&&|\|\||==|!=|<=|>=|<<|>>|[-+*/%<>!~()&|^])'
)

# Binary operators by precedence, lowest first.
BINARY_PRECEDENCE = [
    ('||',), ('&&',), ('|',), ('^',), ('&',), ('==', '!='),
    ('<', '>', '<=', '>='), ('<<', '>>'), ('+', '-'), ('*', '/', '%'),
]


def _strip_comment(text: str) -> str:
    text = re.sub(r'/\*.*?\*/', ' ', text)
    return text.split('//', 1)[0].strip()


def _tokenize(expr: str) -> list:
    tokens, pos = [], 0
    expr = expr.rstrip()
    while pos < len(expr):
        match = TOKEN_PATTERN.match(expr, pos)
        if not match:
            raise ValueError(f"Unexpected character in '{expr}'")
        tokens.append(match.group(1))
        pos = match.end()
    return tokens


def _apply(op, left, right):
    if op == '||': return int(bool(left) or bool(right))
    if op == '&&': return int(bool(left) and bool(right))
    if op == '|': return left | right
    if op == '^': return left ^ right
    if op == '&': return left & right
    if op == '==': return int(left == right)
    if op == '!=': return int(left != right)
    if op == '<': return int(left < right)
    if op == '>': return int(left > right)
    if op == '<=': return int(left <= right)
    if op == '>=': return int(left >= right)
    if op == '<<': return left << right
    if op == '>>': return left >> right
    if op == '+': return left + right
    if op == '-': return left - right
    if op == '*': return left * right
    if right == 0:
        raise ValueError("Division by zero in #if expression")
    if op == '/': return int(left / right)
    return left % right


class _Evaluator:
    """Integer evaluation of an `#if` expression, C preprocessor style."""
    def __init__(self, tokens, macros, depth):
        self.tokens = tokens
        self.pos = 0
        self.macros = macros
        self.depth = depth

    def peek(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self, expected=None):
        token = self.peek()
        if token is None or (expected is not None and token != expected):
            raise ValueError(f"Malformed #if expression near '{token}'")
        self.pos += 1
        return token

    def parse(self):
        value = self.binary(0)
        if self.peek() is not None:
            raise ValueError(f"Trailing tokens in #if expression: '{self.peek()}'")
        return value

    def binary(self, level):
        if level == len(BINARY_PRECEDENCE):
            return self.unary()
        value = self.binary(level + 1)
        while self.peek() in BINARY_PRECEDENCE[level]:
            op = self.take()
            value = _apply(op, value, self.binary(level + 1))
        return value

    def unary(self):
        token = self.peek()
        if token == '!':
            self.take()
            return int(not self.unary())
        if token == '-':
            self.take()
            return -self.unary()
        if token == '+':
            self.take()
            return self.unary()
        if token == '~':
            self.take()
            return ~self.unary()
        return self.primary()

    def primary(self):
        token = self.take()
        if token == '(':
            value = self.binary(0)
            self.take(')')
            return value
        if token == 'defined':
            parenthesized = self.peek() == '('
            if parenthesized:
                self.take('(')
            name = self.take()
            if parenthesized:
                self.take(')')
            return int(name in self.macros)
        if token[0].isdigit():
            return int(token, 0) if token.lower().startswith('0x') else int(token)
        return self.macro_value(token)

    def macro_value(self, name):
        value = self.macros.get(name)
        # Undefined names and non-numeric bodies evaluate to 0.
        if not value or self.depth > 16:
            return 0
        try:
            return evaluate(value, self.macros, self.depth + 1)
        except ValueError:
            return 0


def evaluate(expr: str, macros: dict, depth: int = 0) -> int:
    """
    Evaluates a preprocessor expression.

    Raises:
        ValueError: If the expression cannot be parsed.
    """
    return _Evaluator(_tokenize(expr), macros, depth).parse()


class ConditionalState:
    """
    Follows `#if`/`#ifdef`/`#ifndef`/`#elif`/`#else`/`#endif` and
    `#define`/`#undef` to know whether the current line is active.

    The macro table is shared across included files so include guards
    defined in one header are visible in the next.
    """
    def __init__(self, macros=None):
        self.macros = dict(macros or {})
        self._stack = []

    @property
    def active(self) -> bool:
        return all(frame[2] for frame in self._stack)

    def _condition(self, expr):
        try:
            return bool(evaluate(expr, self.macros))
        except ValueError:
            # Left for the translator to report; the branch counts as taken.
            return True

    def _push(self, condition):
        parent = self.active
        taken = parent and condition
        self._stack.append([parent, taken, taken])

    def feed(self, line: str) -> bool:
        """
        Consumes one source line.

        Returns:
            bool: True if the line was a conditional or macro directive.
        """
        match = DIRECTIVE_PATTERN.match(line)
        if not match:
            return False
        directive, rest = match.group(1), _strip_comment(match.group(2))

        if directive in ('ifdef', 'ifndef'):
            name = rest.split()[0] if rest else ''
            defined = name in self.macros
            self._push(defined if directive == 'ifdef' else not defined)
        elif directive == 'if':
            self._push(self.active and self._condition(rest))
        elif directive in ('elif', 'else') and self._stack:
            frame = self._stack[-1]
            parent, taken = frame[0], frame[1]
            if taken or not parent:
                frame[2] = False
            else:
                frame[2] = directive == 'else' or self._condition(rest)
                frame[1] = frame[2]
        elif directive == 'endif' and self._stack:
            self._stack.pop()
        elif directive == 'define' and self.active:
            match = re.match(r'([A-Za-z_]\w*)(\([^)]*\))?\s*(.*)', rest)
            if match:
                self.macros[match.group(1)] = match.group(3) if not match.group(2) else ''
        elif directive == 'undef' and self.active:
            self.macros.pop(rest.split()[0] if rest else '', None)
        else:
            return False
        return True
