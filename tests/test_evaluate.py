"""Tests for the evaluate() entry point."""

import pytest

import calc
from calc import CompilationError, ErrorType, InterpreterError, LexerError, ParserError


class TestEvaluate:
    """Test results of valid expressions."""

    @pytest.mark.parametrize('text, expected', [
        ('2 + 3 * 4', 14.0),
        ('(2 + 3) * 4', 20.0),
        ('10 - 5 - 2', 3.0),
        ('100 / 10 / 5', 2.0),
        ('--3', 3.0),
        ('-3 + 4', 1.0),
        ('(10 - 5) / 2.5', 2.0),
        ('2 * (3 + 4) - 6 / 2', 11.0),
        ('-(4 - 6) * 3', 6.0),
        ('2 - -3', 5.0),
        ('((((7))))', 7.0),
        ('1 + 2 * 3 - 4 / 2', 5.0),
        ('(1 + 2) * (3 - 4) / 2', -1.5),
    ])
    def test_values(self, text, expected):
        assert calc.evaluate(text) == expected

    def test_result_is_float(self):
        assert isinstance(calc.evaluate('1 + 1'), float)

    def test_whitespace_insensitive(self):
        assert calc.evaluate('2+3') == calc.evaluate(' 2 + 3 ') == calc.evaluate('\t2\n+\n3\t')

    def test_independent_calls(self):
        assert calc.evaluate('1 + 1') == 2.0
        with pytest.raises(CompilationError):
            calc.evaluate('1 +')
        assert calc.evaluate('1 + 1') == 2.0


class TestEvaluateErrors:
    """Test that every failure comes out as CompilationError."""

    def error_of(self, text):
        with pytest.raises(CompilationError) as exc_info:
            calc.evaluate(text)
        return exc_info.value

    def test_division_by_zero(self):
        error = self.error_of('5 / 0')
        assert error.error_type == ErrorType.DIVISION_BY_ZERO
        assert isinstance(error.cause, InterpreterError)
        assert error.__cause__ is error.cause
        assert str(error) == 'Compilation error: InterpreterError: <1:3>: division by zero in `5 / 0`'

    def test_missing_operand(self):
        error = self.error_of('2 + ')
        assert error.error_type in (ErrorType.UNEXPECTED_TOKEN, ErrorType.INVALID_SYNTAX)
        assert isinstance(error.cause, ParserError)

    def test_trailing_token(self):
        error = self.error_of('2 + 3)')
        assert error.error_type == ErrorType.UNEXPECTED_TOKEN

    def test_invalid_character(self):
        error = self.error_of('2 $ 3')
        assert error.error_type == ErrorType.INVALID_CHARACTER
        assert isinstance(error.cause, LexerError)

    def test_malformed_number(self):
        assert self.error_of('1.2.3 + 1').error_type == ErrorType.NUMERIC_CONVERSION_FAILURE

    def test_wrapped_message(self):
        error = self.error_of('(1')
        assert error.message == error.cause.message
        assert error.position == error.cause.position
        assert str(error).startswith('Compilation error: ParserError: <1:3>: ')


class TestEvaluateLongChains:
    """Test flat expressions far longer than the recursion limit."""

    def test_long_sum(self):
        assert calc.evaluate(' + '.join(['1'] * 5000)) == 5000.0

    def test_long_difference_is_left_associative(self):
        assert calc.evaluate('10000' + ' - 1' * 5000) == 5000.0

    def test_long_mixed_chain(self):
        assert calc.evaluate(' + '.join(['2 * 3 / 3'] * 3000)) == 6000.0

    def test_division_by_zero_at_end_of_chain(self):
        with pytest.raises(CompilationError) as exc_info:
            calc.evaluate(' * '.join(['1'] * 3000) + ' / 0')
        assert exc_info.value.error_type == ErrorType.DIVISION_BY_ZERO
