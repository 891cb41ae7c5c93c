"""
simple arithmetic expression calculator
- real numbers: decimal literals, float result
- + - * / with precedence and left associativity
- unary + / -, nested without limit
- parentheses
- tokens / ast display

grammar:
expr                  : term ((PLUS | MINUS) term)*
term                  : factor ((MUL | DIV) factor)*
factor                : PLUS factor
                      | MINUS factor
                      | NUMBER
                      | LPAREN expr RPAREN
"""

from collections import namedtuple
from enum import Enum
import argparse
import string

from pyecharts import options as opts
from pyecharts.charts import Tree

LOCAL_ECHARTS = True
TREE_HTML = 'Tree.html'
_SHOULD_LOG_PARSE = False
_SHOULD_LOG_EVAL = False

BANNER = '''=== Simple Arithmetic Expression Compiler ===
Supports: +, -, *, /, parentheses, and decimal numbers
Enter 'quit' to exit, 'tokens <expr>' to see tokenization, 'ast <expr>' to draw the tree
Examples: 2 + 3 * 4, (10 - 5) / 2.5, -3 + 4
'''

###############################################################################
#                                                                             #
#   ERROR MESSAGE                                                             #
#                                                                             #
###############################################################################

Position = namedtuple('Position', ['line', 'col'])


class ErrorType(Enum):
    # lexer
    INVALID_CHARACTER           = 'Invalid character'
    NUMERIC_CONVERSION_FAILURE  = 'Numeric conversion failure'
    # parser
    UNEXPECTED_TOKEN            = 'Unexpected token'
    INVALID_SYNTAX              = 'Invalid syntax'
    # interpreter
    DIVISION_BY_ZERO            = 'Division by zero'


class ErrorInfo:
    # lexer error

    @staticmethod
    def invalid_character(item):
        return f'invalid character `{item}`'

    @staticmethod
    def invalid_number(item):
        return f'`{item}` is not a valid number'

    # parser error

    @staticmethod
    def unexpected_token(item, want):
        return f'token `{item}` is not expected, want `{want}`'

    @staticmethod
    def invalid_syntax(item):
        return f'invalid syntax at token `{item}`, want a number, sign or `(`'

    # interpreter error

    @staticmethod
    def division_by_zero(item):
        return f'division by zero in `{item}`'


class Error(Exception):
    def __init__(self, error_type, position, message):
        super().__init__(message)
        self.error_type = error_type
        self.position = position
        self.message = message

    def __str__(self):
        return f'{self.__class__.__name__}: <{self.position.line}:{self.position.col}>: {self.message}'

    __repr__ = __str__


class LexerError(Error):
    pass


class ParserError(Error):
    pass


class InterpreterError(Error):
    pass


class CompilationError(Error):
    """any lexer/parser/interpreter error, as seen by the caller of evaluate()
    """

    def __init__(self, cause: Error):
        super().__init__(cause.error_type, cause.position, cause.message)
        self.cause = cause

    def __str__(self):
        return f'Compilation error: {self.cause}'

    __repr__ = __str__


###############################################################################
#                                                                             #
#  LEXER                                                                      #
#                                                                             #
###############################################################################

# Token types
class TokenType(Enum):
    # misc
    NUMBER          = 'NUMBER'
    EOF             = 'EOF'
    # opt
    PLUS            = '+'
    MINUS           = '-'
    MUL             = '*'
    DIV             = '/'
    LPAREN          = '('
    RPAREN          = ')'


# what the tokens command prints for each type
TOKEN_NAMES = {
    TokenType.NUMBER: 'NUMBER',
    TokenType.EOF: 'EOF',
    TokenType.PLUS: 'PLUS',
    TokenType.MINUS: 'MINUS',
    TokenType.MUL: 'MULTIPLY',
    TokenType.DIV: 'DIVIDE',
    TokenType.LPAREN: 'LPAREN',
    TokenType.RPAREN: 'RPAREN',
}


class Token(namedtuple('Token', ['type', 'value', 'position'])):
    """Token

    Args:
      type: TokenType
      value: float for NUMBER, the operator char otherwise, None for EOF
      position: Position
    """
    __slots__ = ()

    def display(self):
        name = TOKEN_NAMES[self.type]
        if self.type == TokenType.NUMBER:
            return f'{name}({self.value:g})'
        return name

    def __str__(self):
        return f'Token({self.type}, {repr(self.value)}, pos={self.position.line}:{self.position.col})'

    def __repr__(self):
        return self.__str__()


class Lexer:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        # for error information
        self.line = 1
        self.col = 1

    @property
    def current_char(self):
        """char at the 'pos' pointer, None at end of input
        """
        if self.pos > len(self.text) - 1:
            return None
        return self.text[self.pos]

    def position(self):
        return Position(self.line, self.col)

    def error(self, error_type, message, position=None):
        raise LexerError(error_type, position or self.position(), message)

    def advance(self):
        """increase the pos pointer, keeping line and col in step
        """
        if self.current_char == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        self.pos += 1

    def skip_whitespace(self):
        while self.current_char is not None and self.current_char.isspace():
            self.advance()

    def number(self):
        """parse a number from the input

        the run of digits and dots is taken as a whole and left to float(),
        so `1.2.3` fails there
        """
        position = self.position()

        result = ''
        while self.current_char is not None and (self.current_char in string.digits or self.current_char == '.'):
            result += self.current_char
            self.advance()

        try:
            value = float(result)
        except ValueError:
            self.error(ErrorType.NUMERIC_CONVERSION_FAILURE, ErrorInfo.invalid_number(result), position)

        return Token(TokenType.NUMBER, value, position)

    def get_next_token(self):
        """lexical analyzer, lexer, scanner, tokenizer

        breaking a sentence apart into tokens. One token one time.
        Keeps returning EOF once the input is exhausted.
        """
        while self.current_char is not None:
            # space
            if self.current_char.isspace():
                self.skip_whitespace()
                continue

            # digit or dot -> number
            if self.current_char in string.digits or self.current_char == '.':
                return self.number()

            # single-char token
            try:
                token_type = TokenType(self.current_char)
            except ValueError:
                self.error(ErrorType.INVALID_CHARACTER, ErrorInfo.invalid_character(self.current_char))
            else:
                token = Token(token_type, self.current_char, self.position())
                self.advance()
                return token

        return Token(TokenType.EOF, None, self.position())


###############################################################################
#                                                                             #
#  AST & PARSER                                                               #
#                                                                             #
###############################################################################

class AST:
    def evaluate(self):
        return Interpreter(self).interpret()


class Num(AST):
    def __init__(self, token: Token):
        self.token = token
        self.value = token.value


class UnaryOp(AST):
    """PLUS | MINUS applied to one operand
    """

    def __init__(self, op: Token, expr):
        self.token = self.op = op
        self.expr = expr


class BinOp(AST):
    """PLUS | MINUS | MUL | DIV applied to two operands
    """

    def __init__(self, left, op: Token, right):
        self.left = left
        self.token = self.op = op
        self.right = right


class Parser:
    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.current_token = self.get_next_token()

    def get_next_token(self):
        return self.lexer.get_next_token()

    def log(self, msg):
        if _SHOULD_LOG_PARSE:
            print(msg)

    def error(self, error_type, token, message):
        raise ParserError(error_type, token.position, message)

    def eat(self, token_type):
        """verify the token type
        """
        if self.current_token.type == token_type:
            self.log(f'eat: {self.current_token}')
            self.current_token = self.get_next_token()
        else:
            self.error(ErrorType.UNEXPECTED_TOKEN, self.current_token,
                       ErrorInfo.unexpected_token(self.current_token.type.value, token_type.value))

    def expr(self):
        """parse expr

        expr : term ((PLUS | MINUS) term)*
        """
        result = self.term()

        while self.current_token.type in (TokenType.PLUS, TokenType.MINUS):
            op = self.current_token
            if op.type == TokenType.PLUS:
                self.eat(TokenType.PLUS)
            else:
                self.eat(TokenType.MINUS)
            result = BinOp(left=result, op=op, right=self.term())

        return result

    def term(self):
        """parse term

        term : factor ((MUL | DIV) factor)*
        """
        result = self.factor()

        while self.current_token.type in (TokenType.MUL, TokenType.DIV):
            op = self.current_token
            if op.type == TokenType.MUL:
                self.eat(TokenType.MUL)
            else:
                self.eat(TokenType.DIV)
            result = BinOp(left=result, op=op, right=self.factor())

        return result

    def factor(self):
        """parse factor

        factor : PLUS factor
               | MINUS factor
               | NUMBER
               | LPAREN expr RPAREN
        """
        token = self.current_token
        if token.type == TokenType.PLUS:
            self.eat(TokenType.PLUS)
            return UnaryOp(token, self.factor())
        elif token.type == TokenType.MINUS:
            self.eat(TokenType.MINUS)
            return UnaryOp(token, self.factor())
        elif token.type == TokenType.NUMBER:
            self.eat(TokenType.NUMBER)
            return Num(token)
        elif token.type == TokenType.LPAREN:
            self.eat(TokenType.LPAREN)
            result = self.expr()
            self.eat(TokenType.RPAREN)
            return result
        else:
            self.error(ErrorType.INVALID_SYNTAX, token, ErrorInfo.invalid_syntax(token.type.value))

    def parse(self):
        result = self.expr()
        if self.current_token.type != TokenType.EOF:
            self.error(ErrorType.UNEXPECTED_TOKEN, self.current_token,
                       ErrorInfo.unexpected_token(self.current_token.type.value, TokenType.EOF.value))

        return result


###############################################################################
#                                                                             #
#  NodeVistor                                                                 #
#                                                                             #
###############################################################################

class NodeVistor:
    def visit(self, node):
        """dispatches
        """
        method_name = 'visit_' + type(node).__name__
        visitor = getattr(self, method_name, self.generic_visitor)
        return visitor(node)

    def generic_visitor(self, node):
        raise Exception(f'No visit_{type(node).__name__} method')


###############################################################################
#                                                                             #
#  DISPLAYER                                                                  #
#                                                                             #
###############################################################################

class Displayer(NodeVistor):
    def __init__(self, tree) -> None:
        self.tree = tree

    def visit_BinOp(self, node: BinOp):
        # left spine in a loop, like Interpreter.visit_BinOp
        spine = [node]
        while isinstance(spine[-1].left, BinOp):
            spine.append(spine[-1].left)

        data = self.visit(spine[-1].left)
        for binop in reversed(spine):
            data = {
                'name': f'{binop.op.value}',
                'children': [data, self.visit(binop.right)]
            }
        return data

    def visit_UnaryOp(self, node: UnaryOp):
        data = {
            'name': f'{node.op.value}',
            'children': [self.visit(node.expr)]
        }
        return data

    def visit_Num(self, node: Num):
        data = {
            'name': f'{node.value:g}'
        }
        return data

    def display(self, path=TREE_HTML):
        data = self.visit(self.tree)
        init_opts = opts.InitOpts(
            page_title='Tree',
            js_host='./' if LOCAL_ECHARTS else '',   # '' falls back to the online host
        )
        (
            Tree(init_opts=init_opts)
            .add(
                series_name="",  # name
                data=[data],  # data
                initial_tree_depth=-1,  # all expand
                orient="TB",  # top-to-bottom
                label_opts=opts.LabelOpts(
                    position="top",
                    vertical_align="middle",
                ),
            )
            .set_global_opts(title_opts=opts.TitleOpts(title="Tree"))
            .render(path)
        )
        return path


###############################################################################
#                                                                             #
#  INTERPRETER                                                                #
#                                                                             #
###############################################################################

class Interpreter(NodeVistor):
    def __init__(self, tree) -> None:
        self.tree = tree

    def log(self, msg):
        if _SHOULD_LOG_EVAL:
            print(msg)

    def error(self, error_type, token, message):
        raise InterpreterError(error_type, token.position, message)

    def visit_BinOp(self, node: BinOp):
        """evaluate a left-leaning chain like `1 + 2 - 3 + ...`

        walks the left spine in a loop, so only the right operands recurse
        """
        spine = [node]
        while isinstance(spine[-1].left, BinOp):
            spine.append(spine[-1].left)

        result = self.visit(spine[-1].left)
        for binop in reversed(spine):
            result = self.apply(binop, result, self.visit(binop.right))
        return result

    def apply(self, node: BinOp, left, right):
        if node.op.type == TokenType.PLUS:
            result = left + right
        elif node.op.type == TokenType.MINUS:
            result = left - right
        elif node.op.type == TokenType.MUL:
            result = left * right
        else:  # node.op.type == DIV
            # exact zero only, -0.0 included
            if right == 0:
                self.error(ErrorType.DIVISION_BY_ZERO, node.op,
                           ErrorInfo.division_by_zero(f'{left:g} / {right:g}'))
            result = left / right

        self.log(f'visit: {left:g} {node.op.value} {right:g} = {result:g}')
        return result

    def visit_UnaryOp(self, node: UnaryOp):
        value = self.visit(node.expr)
        if node.op.type == TokenType.PLUS:
            result = value
        else:  # node.op.type == MINUS
            result = -value

        self.log(f'visit: {node.op.value}{value:g} = {result:g}')
        return result

    def visit_Num(self, node: Num):
        return node.value

    def interpret(self):
        return self.visit(self.tree)


###############################################################################
#                                                                             #
#   ENTRY POINTS                                                              #
#                                                                             #
###############################################################################

def evaluate(expression: str) -> float:
    """parse and evaluate an expression

    every lexer/parser/interpreter error comes out as CompilationError
    """
    try:
        tree = Parser(Lexer(expression)).parse()
        return tree.evaluate()
    except (LexerError, ParserError, InterpreterError) as e:
        raise CompilationError(e) from e


def tokenize(expression: str) -> list:
    """all tokens of an expression, EOF not included
    """
    lexer = Lexer(expression)
    tokens = []
    token = lexer.get_next_token()
    while token.type != TokenType.EOF:
        tokens.append(token)
        token = lexer.get_next_token()
    return tokens


def format_tokens(expression: str) -> str:
    return ' '.join([token.display() for token in tokenize(expression)] + [TOKEN_NAMES[TokenType.EOF]])


def display_ast(expression: str, path=TREE_HTML) -> str:
    try:
        tree = Parser(Lexer(expression)).parse()
    except (LexerError, ParserError) as e:
        raise CompilationError(e) from e
    return Displayer(tree).display(path)


###############################################################################
#                                                                             #
#   MAIN                                                                      #
#                                                                             #
###############################################################################

def print_tokens(expression):
    print(f'Tokens for "{expression}":')
    try:
        print(format_tokens(expression))
    except LexerError as e:
        print(f'Error: {e}')
    print('')


def print_result(expression, show_ast=False):
    try:
        result = evaluate(expression)
        print(f'Result: {result:g}')
        if show_ast:
            print(f'open "{display_ast(expression)}"')
    except CompilationError as e:
        print(f'Error: {e}')
    print('')


def shell(show_ast=False):
    print(BANNER)

    while True:
        try:
            text = input('Enter expression: ')
        except (EOFError, KeyboardInterrupt):
            print('')
            break

        if text == 'quit':
            break

        if text.startswith('tokens'):
            if len(text) > 7:
                print_tokens(text[7:])
            else:
                print('Usage: tokens <expression>')
            continue

        if text.startswith('ast'):
            if len(text) > 4:
                try:
                    print(f'open "{display_ast(text[4:])}"')
                except CompilationError as e:
                    print(f'Error: {e}')
                print('')
            else:
                print('Usage: ast <expression>')
            continue

        if not text:
            continue

        print_result(text, show_ast)

    print('Goodbye!')


def main(argv=None):
    global _SHOULD_LOG_PARSE
    global _SHOULD_LOG_EVAL

    parser = argparse.ArgumentParser(description='Simple Arithmetic Expression Compiler')
    parser.add_argument('-e', '--expression', help='Evaluate one expression and exit')
    parser.add_argument('--ast', action='store_true', help=f'Render the tree of each expression to {TREE_HTML}')
    parser.add_argument('--trace-parse', action='store_true', help='Print every token the parser eats')
    parser.add_argument('--trace-eval', action='store_true', help='Print every operation the interpreter runs')
    args = parser.parse_args(argv)

    _SHOULD_LOG_PARSE = args.trace_parse
    _SHOULD_LOG_EVAL = args.trace_eval

    if args.expression is not None:
        print_result(args.expression, args.ast)
    else:
        shell(args.ast)


if __name__ == '__main__':
    main()
