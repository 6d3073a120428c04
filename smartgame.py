#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# smartgame.py (Smart Game Format reader & writer)
# Copyright © 2000-2021 David John Goodger (goodger@python.org)
#
# This library is free software; you can redistribute it and/or modify it
# under the terms of the GNU Lesser General Public License as published by the
# Free Software Foundation; either version 2 of the License, or (at your
# option) any later version.
#
# This library is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or
# FITNESS FOR A PARTICULAR PURPOSE.  See the GNU Lesser General Public License
# for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# (lgpl.txt) along with this library; if not, write to the Free Software
# Foundation, Inc., 59 Temple Place, Suite 330, Boston, MA  02111-1307  USA
# The license is currently available on the Internet at:
#     http://www.gnu.org/copyleft/lesser.html

"""
=====================================================
 Smart Game Format Reader & Writer Library: smartgame
=====================================================

version 1.0

Description
===========

This library reads and writes SGF, the Smart Game Format, file formats 1
through 4 (FF[1]-FF[4]). SGF is a text only, tree based file format designed
to store game records of board games for two players, most commonly for the
game of Go. (See `the official SGF specification
<https://www.red-bean.com/sgf/>`_.)

Given SGF text, `parse()` returns a `Collection` object consisting of one or
more `GameTree` instances (one per game), each containing a sequence of `Node`
instances and zero or more variation `GameTree` objects. Variations begin
immediately following the last `Node` in the enclosing sequence; the first
variation continues the main line of the game. Each `Node` is a mapping of
property IDs to lists of values.

Processing happens in stages:

* `TokenStream` turns characters into `Token` objects (the lexer).

* `Parser` builds the `Collection` from tokens, by recursive descent over the
  SGF grammar::

      Collection := GameTree+
      GameTree   := '(' Node+ GameTree* ')'
      Node       := ';' Property*
      Property   := Identifier Value+

* `serialize()` (or ``str()``) renders the objects back to SGF text, such
  that ``parse(serialize(tree))`` reproduces ``tree``.

Property values are stored as given. Parsed values are always strings; no
property-specific interpretation takes place.

Thin wrappers: `load()` & `save()` read and write files (output is always
UTF-8), and `print_sgf()` writes optionally color-highlighted SGF text.

Command-line tools:

* PrintCLI: Print an SGF file with syntax highlighting.

* NormalizerCLI: Put an SGF collection into a normalized form.
"""


import sys
import warnings
import argparse
import datetime
import enum
import io
import numbers
import re
import string
import textwrap
import collections
import collections.abc
from decimal import Decimal


__version__ = '1.0'

TEXT_ENCODING = 'UTF-8'
"""Encoding used for all text output."""

PRETTY_INDENT_SPACES = 2
"""Per-level indent for pretty-formatted output."""

COLORS = {
    'tree': '\033[1;34m',
    'node': '\033[1;33m',
    'identifier': '\033[1;32m',
    'bracket': '\033[36m',
    'value': '\033[37m',
    'escape': '\033[35m',
    'reset': '\033[0m',
    }
"""ANSI SGR sequences used by `print_sgf()`, by syntax element."""


class Error(Exception):
    """Base class for smartgame exceptions."""
    pass

# Lexing & Parsing Exceptions

class LexicalError(Error):

    """
    Raised by `TokenStream.next_token()` for a character sequence that is not
    valid SGF: an illegal character outside of a property value, or a
    property value missing its closing "]".
    """

    def __init__(self, message, position):
        super().__init__(message, position)
        self.message = message
        self.position = position

    def __str__(self):
        return (f'{self.message} (line {self.position.line}, '
                f'column {self.position.column})')


class ParseError(Error):

    """
    Raised by `Parser` methods for a token sequence that violates the SGF
    grammar. `context` is the offending `Token`, if known.
    """

    def __init__(self, message, context=None):
        super().__init__(message, context)
        self.message = message
        self.context = context

    def __str__(self):
        if self.context is None:
            return self.message
        return f'{self.message} [{self.context}]'

# Tree Construction Exceptions

class TreeConstructionError(Error):
    """Raised by `GameTree()`."""
    pass

# Miscellaneous Exceptions

class PropertyError(Error, AttributeError):
    """Raised by `Node` methods & `format_value()`."""
    pass


class TokenType(enum.Enum):

    """Kinds of lexical units. Delimiter values are their characters."""

    EMPTY = 'trailing whitespace'
    SEMICOLON = ';'
    LPAREN = '('
    RPAREN = ')'
    LBRACKET = '['
    RBRACKET = ']'
    IDENTIFIER = 'identifier'
    VALUE = 'value'
    EOF = 'end of input'


Position = collections.namedtuple('Position', 'offset line column')
Position.__doc__ = """\
Location in the source: 0-based character `offset`, 1-based `line` and
`column`."""


class Token(collections.namedtuple(
        'Token', 'type text position', defaults=('', None))):

    """
    A lexical unit: a `TokenType`, its `text` (the identifier for
    `TokenType.IDENTIFIER`, the unescaped content for `TokenType.VALUE`, the
    character for delimiters), and the `Position` where it starts.
    """

    __slots__ = ()

    def __str__(self):
        if self.type in (TokenType.IDENTIFIER, TokenType.VALUE):
            description = f'{self.type.value} {self.text!r}'
        elif self.type in (TokenType.EMPTY, TokenType.EOF):
            description = self.type.value
        else:
            description = f'"{self.text}"'
        if self.position is None:
            return description
        return (f'{description} at line {self.position.line}, '
                f'column {self.position.column}')


class TokenStream:

    """
    Lexer: a stateful wrapper around a character source, producing `Token`
    objects on demand via `next_token()` or by iteration.

    The source is a `str` or a text file object (anything with ``read(1)``),
    consumed one character at a time.
    """

    delimiters = ';()[]'
    identifier_start = string.ascii_uppercase
    identifier_chars = string.ascii_uppercase + string.digits
    line_break_chars = '\r\n'

    def __init__(self, source):
        if isinstance(source, str):
            source = io.StringIO(source)
        self.source = source
        """Character source (text file object)."""

        self.offset = 0
        self.line = 1
        self.column = 1
        """Position of the next unconsumed character."""

        self.lookahead = None
        """Next character, read but not consumed ('' at end of input)."""

        self.in_value = False
        """True after a "[" token: the next token is the property value."""

        self.pending = None
        """The "]" token that ended the most recent property value."""

    def __iter__(self):
        """Generate tokens, ending with (& including) `TokenType.EOF`."""
        while True:
            token = self.next_token()
            yield token
            if token.type is TokenType.EOF:
                return

    def next_token(self):
        """
        Read and return the next `Token`. At the end of input, return a
        `TokenType.EOF` token (repeatedly, if called again).

        Raise `LexicalError` for illegal characters.
        """
        if self.pending is not None:
            token, self.pending = self.pending, None
            return token
        if self.in_value:
            return self._read_value()
        skipped = False
        while self._peek().isspace():
            self._read()
            skipped = True
        position = self.position()
        char = self._peek()
        if not char:
            if skipped:
                return Token(TokenType.EMPTY, '', position)
            return Token(TokenType.EOF, '', position)
        if char in self.delimiters:
            self._read()
            if char == '[':
                self.in_value = True
            return Token(TokenType(char), char, position)
        if char in self.identifier_start:
            return self._read_identifier(position)
        if char.islower():
            message = (f'Lowercase letter "{char}" is not allowed in a '
                       f'property identifier')
        else:
            message = f'Unexpected character {char!r} outside of a value'
        raise LexicalError(message, position)

    def position(self):
        return Position(self.offset, self.line, self.column)

    def _peek(self):
        if self.lookahead is None:
            self.lookahead = self.source.read(1)
        return self.lookahead

    def _read(self):
        char = self._peek()
        self.lookahead = None
        if char:
            self.offset += 1
            if char == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return char

    def _read_identifier(self, position):
        chars = [self._read()]
        while (char := self._peek()) and char in self.identifier_chars:
            chars.append(self._read())
        return Token(TokenType.IDENTIFIER, ''.join(chars), position)

    def _read_value(self):
        """
        Read a property value up to & including the unescaped "]". Return
        the `TokenType.VALUE` token; the "]" token is held in `self.pending`.

        A backslash escapes the next character; a backslash before a line
        break removes both (soft line break).
        """
        self.in_value = False
        position = self.position()
        chars = []
        while True:
            end_position = self.position()
            char = self._read()
            if char == '\\':
                char = self._read()
                if char and char in self.line_break_chars:
                    # \r\n or \n\r count as one line break:
                    following = self._peek()
                    if (following and following in self.line_break_chars
                            and following != char):
                        self._read()
                    continue
            elif char == ']':
                self.pending = Token(TokenType.RBRACKET, ']', end_position)
                return Token(TokenType.VALUE, ''.join(chars), position)
            if not char:
                raise LexicalError(
                    'Unterminated property value (missing "]")', position)
            chars.append(char)


def next_token(stream):
    """Return the next `Token` from the `TokenStream` `stream`."""
    return stream.next_token()


class Collection(list):

    """
    A `Collection` is a `list` of one or more `GameTree` objects.
    """

    path = None
    """Source file path, set by `load()`."""

    def __str__(self):
        """SGF text representation, accessed via `str(collection)`."""
        return ''.join(str(item) for item in self)

    def pretty(self):
        """
        Pretty-formatted SGF text representation. Separates game trees with
        a blank line.
        """
        return '\n\n'.join(item.pretty() for item in self) + '\n'

    def __repr__(self):
        """
        The canonical string representation of the `Collection`.
        """
        if not self:
            return f'{self.__class__.__name__}()'
        return '{}({}, ...)'.format(self.__class__.__name__, repr(self[0]))

    def normalize(self):
        """Normalize `self`."""
        for gametree in self:
            gametree.normalize()


class GameTree(collections.abc.Sequence):

    """
    An SGF game tree: a sequence of `Node` objects (game plays) and optional
    variations (branches).

    Instance attributes:

    self.sequence : list of `Node`
       Game tree 'trunk' (main line of game or variation), all plays prior to
       any variations.

    self.variations : list of `GameTree`
       Variations of a game. `self.variations[0]` continues the main line of
       the game; the others are alternatives to it.

    Indexing, ``len()`` and iteration follow the main line of the game,
    continuing through the first variation of each tree: if
    ``len(tree.sequence) == 3``, then ``tree[3]`` is
    ``tree.variations[0][0]``.
    """

    def __init__(self, sequence=None, variations=None):
        """
        Arguments:

        - sequence : `GameTree` or list of `Node` or `Node` -- Stored in
          `self.sequence`. The lists of a `GameTree` are copied.
        - variations : list of `GameTree` -- Stored in `self.variations`.
        """
        if isinstance(sequence, GameTree):
            if variations is None:
                variations = sequence.variations
            sequence = sequence.sequence
        if sequence is None:
            self.sequence = []
        elif isinstance(sequence, Node):
            self.sequence = [sequence]
        elif isinstance(sequence, (list, tuple)):
            self.sequence = list(sequence)
        else:
            raise TreeConstructionError(
                f'Unable to construct a GameTree from supplied sequence '
                f'(type {type(sequence)}).')
        self.variations = [] if variations is None else list(variations)
        for node in self.sequence:
            if not isinstance(node, Node):
                raise TreeConstructionError(
                    f'GameTree sequence items must be Node objects, '
                    f'not {type(node)}.')
        for variation in self.variations:
            if not isinstance(variation, GameTree):
                raise TreeConstructionError(
                    f'GameTree variations must be GameTree objects, '
                    f'not {type(variation)}.')

    def _locate(self, index):
        """
        Return a (`GameTree`, index) pair for main line node `index`, where
        the index points into the returned tree's sequence.
        """
        if index < 0:
            index += len(self)
        tree = self
        if index >= 0:
            while index >= len(tree.sequence):
                if not tree.variations:
                    break
                index -= len(tree.sequence)
                tree = tree.variations[0]
            else:
                return tree, index
        raise IndexError('GameTree index out of range')

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        tree, index = self._locate(index)
        return tree.sequence[index]

    def __setitem__(self, index, node):
        if isinstance(index, slice):
            raise TypeError(
                'GameTree main line nodes can only be replaced one at a time; '
                'slice assignment is not supported.')
        if not isinstance(node, Node):
            raise TreeConstructionError(
                f'GameTree main line items must be Node objects, '
                f'not {type(node)}.')
        tree, index = self._locate(index)
        tree.sequence[index] = node

    def main_line(self):
        """Generate this `GameTree` and its chain of first variations."""
        tree = self
        while True:
            yield tree
            if not tree.variations:
                return
            tree = tree.variations[0]

    def __len__(self):
        """Return the number of nodes in the main line."""
        return sum(len(tree.sequence) for tree in self.main_line())

    def __iter__(self):
        for tree in self.main_line():
            yield from tree.sequence

    def __eq__(self, other):
        if not isinstance(other, GameTree):
            return NotImplemented
        pairs = [(self, other)]
        while pairs:
            (mine, theirs) = pairs.pop()
            if (mine.sequence != theirs.sequence
                    or len(mine.variations) != len(theirs.variations)):
                return False
            pairs.extend(zip(mine.variations, theirs.variations))
        return True

    def __ne__(self, other):
        equal = self.__eq__(other)
        return equal if equal is NotImplemented else not equal

    __hash__ = None

    def walk(self):
        """
        Generate ``(event, item, depth)`` triples for this `GameTree` in
        document order, without recursion: ``('(', tree, depth)`` opens a
        tree, ``(';', node, depth)`` is each node of its sequence, and
        ``(')', tree, depth)`` closes it after all of its variations. `depth`
        counts the variation nesting below this tree, which has depth 0.
        """
        stack = [(self, 0, False)]
        while stack:
            (tree, depth, closing) = stack.pop()
            if closing:
                yield ')', tree, depth
                continue
            yield '(', tree, depth
            for node in tree.sequence:
                yield ';', node, depth
            stack.append((tree, depth, True))
            stack.extend(
                (variation, depth + 1, False)
                for variation in reversed(tree.variations))

    def __str__(self):
        """Return an SGF representation of this `GameTree`."""
        return ''.join(
            str(item) if event == ';' else event
            for (event, item, depth) in self.walk())

    def pretty(self, indent=0):
        """Return a pretty-formatted SGF representation of this `GameTree`."""
        parts = []
        for (event, item, depth) in self.walk():
            spaces = ' ' * (indent + depth) * PRETTY_INDENT_SPACES
            if event == ';':
                parts.append(
                    f'\n{" " * PRETTY_INDENT_SPACES}{spaces}'
                    f'{item.pretty(indent + depth + 1)}')
            elif event == '(' and depth == 0:
                parts.append('(')
            else:
                parts.append(f'\n{spaces}{event}')
        return ''.join(parts)

    def __repr__(self):
        parts = []
        if self.sequence:
            parts.append('sequence=[{!r}, ...]'.format(self.sequence[0]))
        if self.variations:
            parts.append('variations=[{!r}, ...]'.format(self.variations[0]))
        return '{}({})'.format(self.__class__.__name__, ', '.join(parts))

    def trunk(self):
        """
        Return the main line of the game (nodes and first variations) as a
        new `GameTree` without variations.
        """
        return GameTree(list(self))

    def normalize(self):
        """
        Fold every chain of single variations into the enclosing sequence.
        """
        trees = [self]
        while trees:
            tree = trees.pop()
            while len(tree.variations) == 1:
                variation = tree.variations[0]
                tree.sequence.extend(variation.sequence)
                tree.variations = variation.variations
            trees.extend(tree.variations)


class Node(dict):

    """
    An SGF node (one move or play, or initial setup), consisting of properties
    (ID:values pairs), in order of insertion. Every property value is a
    non-empty list; values are strings (as parsed) or other scalars such as
    numbers.

    Example: Let ``node`` be a `Node` parsed from ';B[aa]AB[bb][cc]':

    * node['B']  =>  ['aa']
    * node['AB'] =>  ['bb', 'cc']
    * node.black =>  ['aa']

    Assignment (``node['KM'] = 6.5``) replaces all values of a property;
    `Node.append()` adds one value.
    """

    identifier_pattern = re.compile(r'[A-Z][A-Z0-9]*\Z')
    """Property ID syntax: an uppercase letter, then uppercase letters or
    digits (FF[1]-FF[3])."""

    def __init__(self, *properties, **kwargs):
        """
        Arguments:

        - properties : (property ID, value) pairs.
        - kwargs : property ID=value, inserted after `properties`.
        """
        super().__init__()
        for (property_id, value) in properties:
            self[property_id] = value
        for (property_id, value) in kwargs.items():
            self[property_id] = value

    def check_property_id(self, property_id):
        if not (isinstance(property_id, str)
                and self.identifier_pattern.match(property_id)):
            raise PropertyError(
                f'Invalid SGF property ID: {property_id!r}')

    def __setitem__(self, property_id, value):
        """Set (replace) the values of a property, wrapping a scalar."""
        self.check_property_id(property_id)
        if isinstance(value, (list, tuple)):
            values = list(value)
        else:
            values = [value]
        if not values:
            raise PropertyError(
                f'Property {property_id} requires at least one value.')
        super().__setitem__(property_id, values)

    def set(self, property_id, value):
        """Alias for ``self[property_id] = value``."""
        self[property_id] = value

    def append(self, property_id, value):
        """
        Append `value` to the values of property `property_id`, creating the
        property if absent.
        """
        if property_id in self:
            super().__getitem__(property_id).append(value)
        else:
            self[property_id] = [value]

    def update(self, *args, **kwargs):
        for (property_id, value) in dict(*args, **kwargs).items():
            self[property_id] = value

    def setdefault(self, property_id, value):
        if property_id not in self:
            self[property_id] = value
        return super().__getitem__(property_id)

    def copy(self):
        """Return a new `Node` with equal properties & copied value lists."""
        return self.__class__(*self.items())

    def resolve_property_id(self, name):
        if self.identifier_pattern.match(name):
            return name
        elif name in self.property_names:
            return self.property_names[name]
        else:
            raise PropertyError(
                "Unknown SGF property name or ID: '{}'".format(name))

    def __getattr__(self, name):
        key = self.resolve_property_id(name)
        try:
            return self[key]
        except KeyError:
            if name == key:
                raise PropertyError(
                    "No '{}' property ID in Node".format(name)) from None
            else:
                raise (PropertyError(
                    "No '{}' property (SGF ID '{}') in Node".format(name, key))
                    ) from None

    def __setattr__(self, name, value):
        key = self.resolve_property_id(name)
        self[key] = value

    def __delattr__(self, name):
        key = self.resolve_property_id(name)
        try:
            del self[key]
        except KeyError:
            raise PropertyError(
                "No '{}' property ID in Node".format(key)) from None

    def canonical(self):
        """
        Return a list of (property ID, list of value text) pairs, as
        serialized.
        """
        return [(property_id, [format_value(value) for value in values])
                for (property_id, values) in self.items()]

    def __eq__(self, other):
        """
        Nodes are equal if their properties are in the same order and their
        values serialize identically (so ``6.5 == '6.5'``).
        """
        if not isinstance(other, Node):
            return super().__eq__(other)
        return self.canonical() == other.canonical()

    def __ne__(self, other):
        equal = self.__eq__(other)
        return equal if equal is NotImplemented else not equal

    __hash__ = None

    def __str__(self):
        """Return an SGF text representation of this `Node`."""
        parts = [';']
        for (property_id, values) in self.items():
            parts.append(property_id)
            for value in values:
                parts.append(f'[{escape_text(format_value(value))}]')
        return ''.join(parts)

    def pretty(self, indent=0):
        return str(self)

    def __repr__(self):
        return '{}({})'.format(
            self.__class__.__name__,
            ', '.join('{}={!r}'.format(name, values)
                      for name, values in self.items()))

    property_ids = {
        'AB': 'add_black',
        'AE': 'add_empty',
        'AN': 'annotation',
        'AP': 'application',
        'AR': 'arrow',
        'AS': 'who_adds_stones',
        'AW': 'add_white',
        'B':  'black',
        'BL': 'black_time_left',
        'BM': 'bad_move',
        'BR': 'black_rank',
        'BT': 'black_team',
        'C':  'comment',
        'CA': 'charset',
        'CP': 'copyright',
        'CR': 'circle',
        'DD': 'dim_points',
        'DM': 'even_position',
        'DO': 'doubtful',
        'DT': 'date',
        'EV': 'event',
        'FF': 'file_format',
        'FG': 'figure',
        'GB': 'good_for_black',
        'GC': 'game_comment',
        'GM': 'game',
        'GN': 'game_name',
        'GW': 'good_for_white',
        'HA': 'handicap',
        'HO': 'hotspot',
        'IT': 'interesting',
        'KM': 'komi',
        'KO': 'ko',
        'LB': 'label',
        'LN': 'line',
        'MA': 'mark',
        'MN': 'set_move_number',
        'N':  'node_name',
        'OB': 'overtime_stones_black',
        'ON': 'opening',
        'OT': 'overtime',
        'OW': 'overtime_stones_white',
        'PB': 'player_black',
        'PC': 'place',
        'PL': 'player_to_play',
        'PM': 'print_move_mode',
        'PW': 'player_white',
        'RE': 'result',
        'RO': 'round',
        'RU': 'rules',
        'SL': 'selected',
        'SO': 'source',
        'SQ': 'square',
        'ST': 'style',
        'SZ': 'size',
        'TB': 'territory_black',
        'TE': 'tesuji',
        'TM': 'time_limit',
        'TR': 'triangle',
        'TW': 'territory_white',
        'UC': 'unclear_position',
        'US': 'user',
        'V':  'value',
        'VW': 'view',
        'W':  'white',
        'WL': 'white_time_left',
        'WR': 'white_rank',
        'WT': 'white_team',
        }
    """Mapping of FF[4] property ID to descriptive property name, used for
    attribute access (``node.komi``)."""

    property_names = {value: key for (key, value) in property_ids.items()}
    """Mapping of property name to SGF property ID."""


# Serialization

chars_to_escape = ['\\', ']']
"""List of characters that need to be backslash-escaped."""

chars_to_escape_pattern = re.compile(
    '(' + '|'.join(re.escape(char) for char in chars_to_escape) + ')')
"""Regexp pattern for isolating characters for backslash escaping."""

escape_sequence_pattern = re.compile(r'(\\.)', re.DOTALL)
"""Regexp pattern for isolating backslash escapes in escaped text."""


def escape_text(text):
    """Add backslash-escapes to property value characters that need them."""
    return ''.join(
        # escapable characters are at all odd indexes:
        ('\\' if index % 2 else '') + part
        for (index, part) in enumerate(chars_to_escape_pattern.split(text)))


def format_value(value):
    """
    Return the canonical SGF text of a property value (unescaped).

    Strings are returned unchanged. Integers become decimal digits; other real
    numbers become the shortest fixed-point decimal that represents them
    (``6.5``, ``7``), never exponent notation. Other objects use ``str()``.

    Raise `PropertyError` for infinite & NaN numbers.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, (Decimal, numbers.Real)):
        if not isinstance(value, Decimal):
            value = Decimal(repr(float(value)))
        if not value.is_finite():
            raise PropertyError(f'Cannot represent {value} in SGF.')
        text = format(value, 'f')
        if '.' in text:
            text = text.rstrip('0').rstrip('.')
        return text
    return str(value)


def serialize(sgf):
    """
    Return the SGF text of `sgf`, a `Collection`, `GameTree`, or `Node`.
    """
    if not isinstance(sgf, (Collection, GameTree, Node)):
        raise TypeError(
            f'Expected a Collection, GameTree, or Node, not {type(sgf)}.')
    return str(sgf)


class Parser:

    """
    Parser for SGF data. Creates a tree structure based on the SGF standard
    itself. `Parser.parse()` will return a `Collection` object for the
    entire data.

    Each ``parse_*`` method for a grammar rule returns the parsed object, or
    `None` if the next token cannot start that rule (nothing is consumed).
    Grammar violations raise `ParseError`; `LexicalError` from the
    `TokenStream` passes through unchanged.
    """

    def __init__(self, source):
        """
        `source` may be SGF text (`str` or `bytes`, decoded as UTF-8), a text
        file object, a `TokenStream`, or any iterable of `Token` objects.
        """
        if isinstance(source, (bytes, bytearray)):
            source = source.decode(TEXT_ENCODING)
        if isinstance(source, str) or hasattr(source, 'read'):
            source = TokenStream(source)
        self.tokens = iter(source)
        """Iterator of `Token` objects."""

        self.lookahead = None
        """The next significant token, read but not consumed."""

    def peek(self):
        """Return the next significant token, without consuming it."""
        while self.lookahead is None:
            token = next(self.tokens, None)
            if token is None:
                token = Token(TokenType.EOF)
            if token.type is not TokenType.EMPTY:
                self.lookahead = token
        return self.lookahead

    def advance(self):
        """Consume & return the next significant token."""
        token = self.peek()
        if token.type is not TokenType.EOF:
            self.lookahead = None
        return token

    def accept(self, token_type):
        """Consume & return the next token if of `token_type`, else `None`."""
        if self.peek().type is token_type:
            return self.advance()
        return None

    def parse(self):
        """
        Parse the complete SGF data, and return a `Collection`.
        """
        collection = Collection()
        while (game := self.parse_game_tree()) is not None:
            collection.append(game)
        token = self.peek()
        if not collection:
            raise ParseError('No valid game tree found.', token)
        if token.type is not TokenType.EOF:
            raise ParseError(
                'Unexpected data after the last game tree.', token)
        return collection

    def parse_one_game(self):
        """
        Parse one game. Return a `GameTree` containing one game, or `None`
        if the end of the data has been reached.
        """
        game = self.parse_game_tree()
        if game is None and self.peek().type is not TokenType.EOF:
            raise ParseError('Expected "(" to start a game tree.', self.peek())
        return game

    def parse_game_tree(self):
        """
        Parse and return one `GameTree`: "(", one or more nodes, zero or more
        variations, and ")".
        """
        start = self.accept(TokenType.LPAREN)
        if start is None:
            return None
        sequence = []
        while (node := self.parse_node()) is not None:
            sequence.append(node)
        if not sequence:
            raise ParseError(
                'Game tree must start with at least one node.', self.peek())
        variations = []
        while (variation := self.parse_game_tree()) is not None:
            variations.append(variation)
        token = self.advance()
        if token.type is TokenType.RPAREN:
            return GameTree(sequence, variations)
        elif token.type is TokenType.EOF:
            raise ParseError(
                'Unterminated game tree: input ended before ")".', start)
        elif token.type is TokenType.SEMICOLON:
            raise ParseError(
                'A node was encountered after a variation.', token)
        else:
            raise ParseError('Expected ")" to end the game tree.', token)

    def parse_node(self):
        """
        Parse and return one `Node`, which can be empty: ";" followed by zero
        or more properties.

        Only one of each property is allowed per node; a duplicate property
        ID raises `ParseError`.
        """
        if self.accept(TokenType.SEMICOLON) is None:
            return None
        node = Node()
        while True:
            token = self.peek()
            prop = self.parse_property()
            if prop is None:
                return node
            property_id, values = prop
            if property_id in node:
                raise ParseError(
                    f'Duplicate property identifier in node: {property_id}',
                    token)
            for value in values:
                node.append(property_id, value)

    def parse_property(self):
        """
        Parse one property: an identifier followed by one or more values.
        Return a (property ID, list of values) pair.
        """
        token = self.accept(TokenType.IDENTIFIER)
        if token is None:
            return None
        values = []
        while (value := self.parse_property_value()) is not None:
            values.append(value)
        if not values:
            raise ParseError(
                f'Property {token.text} has no value.', self.peek())
        return token.text, values

    def parse_property_value(self):
        """
        Parse one value, "[", the value text, and "]". The value token may be
        absent from a token sequence, denoting the empty value.
        """
        if self.accept(TokenType.LBRACKET) is None:
            return None
        value = self.accept(TokenType.VALUE)
        token = self.advance()
        if token.type is not TokenType.RBRACKET:
            raise ParseError('Expected "]" to end the property value.', token)
        return '' if value is None else value.text


def parse(source):
    """
    Parse SGF `source` (see `Parser`) and return a `Collection`.

    Raise `LexicalError` for illegal characters, and `ParseError` for
    structurally invalid SGF.
    """
    return Parser(source).parse()


# Files & presentation

def load(path, encoding=TEXT_ENCODING):
    """
    Return a `Collection` loaded from a filesystem `path` ("-" reads from
    <stdin>), decoded with `encoding`.
    """
    if path == '-':
        data = sys.stdin.buffer.read()
    else:
        with open(path, 'rb') as src:
            data = src.read()
    collection = parse(data.decode(encoding))
    collection.path = path
    return collection


def save(sgf, file_or_path, pretty=False):
    """
    Output `sgf` (a `Collection`, `GameTree`, or `Node`) as UTF-8 bytes to
    `file_or_path` (a path, a binary file object, or "-" for <stdout>),
    optionally `pretty`-formatted.
    """
    check_charset(sgf)
    text = sgf.pretty() if pretty else serialize(sgf)
    output = bytes(text, encoding=TEXT_ENCODING)
    if file_or_path == '-':
        sys.stdout.buffer.write(output)
    elif hasattr(file_or_path, 'write'):
        file_or_path.write(output)
    else:
        with open(file_or_path, 'wb') as dest:
            dest.write(output)


def check_charset(sgf):
    """
    Warn if a root node declares a charset (CA property) other than UTF-8,
    the encoding of all output.
    """
    if isinstance(sgf, Node):
        roots = [sgf]
    else:
        trees = [sgf] if isinstance(sgf, GameTree) else sgf
        roots = [tree[0] for tree in trees if len(tree)]
    for root in roots:
        if 'CA' not in root:
            continue
        charset = format_value(root['CA'][0])
        if charset.upper().replace('_', '-') not in ('UTF-8', 'UTF8'):
            warnings.warn(
                f'Root node declares charset "CA[{charset}]"; output is '
                f'encoded as {TEXT_ENCODING} regardless.')


def print_sgf(file, sgf, color=True):
    """
    Write the SGF text of `sgf` (a `Collection`, `GameTree`, or `Node`) and a
    newline to the text file object `file`, highlighted with ANSI colors
    (`COLORS`) if `color` is true.
    """
    if color:
        text = ''.join(highlighted_parts(sgf))
    else:
        text = serialize(sgf)
    file.write(text + '\n')


def highlight(text, element):
    return f'{COLORS[element]}{text}{COLORS["reset"]}'


def highlighted_parts(sgf):
    """Generate the color-highlighted SGF text of `sgf`, piece by piece."""
    if isinstance(sgf, Node):
        yield highlight(';', 'node')
        for (property_id, values) in sgf.items():
            yield highlight(property_id, 'identifier')
            for value in values:
                yield highlight('[', 'bracket')
                text = escape_text(format_value(value))
                for (index, part) in enumerate(
                        escape_sequence_pattern.split(text)):
                    # escape sequences are at all odd indexes:
                    if part:
                        yield highlight(
                            part, 'escape' if index % 2 else 'value')
                yield highlight(']', 'bracket')
    elif isinstance(sgf, GameTree):
        for (event, item, depth) in sgf.walk():
            if event == ';':
                yield from highlighted_parts(item)
            else:
                yield highlight(event, 'tree')
    elif isinstance(sgf, Collection):
        for gametree in sgf:
            yield from highlighted_parts(gametree)
    else:
        raise TypeError(
            f'Expected a Collection, GameTree, or Node, not {type(sgf)}.')


class CLI:

    """
    Abstract base class that supports command-line interface tools.
    Subclasses must define:

    * An ``execute`` method as follows::

          def execute(self):
              # do everything here

    * `argument_specs`, the CLI arguments & options specifications, used as
      the arguments to `argparse.add_argument`::

          argument_specs = (
              (# Argument name or option flags (a tuple):
               ('name',),
               # Keyword arguments (a dictionary):
               {'default': None,
                'metavar': 'NAME',
                'help': ('Name that name.')}),
              # ...
              )

    * A class docstring that will be used as the description for the CLI
      --help.

    The command-line front end tool itself needs only two lines:

        import smartgame
        smartgame.PrintCLI().run()
    """

    def __init__(self, settings=None, argv=None):
        """Instantiate to process the command-line arguments."""
        if settings is None:
            settings = self.process_command_line(argv)
        self.settings = settings

    @classmethod
    def main(cls):
        """Console script entry point."""
        cls().run()

    def run(self):
        try:
            self.execute()
        except BaseException:
            print(
                '\n{}'.format(
                    datetime.datetime.now().isoformat(
                        sep=' ', timespec='seconds')),
                file=sys.stderr)
            raise

    def execute(self):
        raise NotImplementedError

    help_option_spec = (
        ('--help', '-h',),
        {'action': 'help', 'help': 'Show this help message.'})

    @classmethod
    def process_command_line(cls, argv=None):
        """
        Return `settings`, a namespace of options & arguments to their values.

        `argv` is a list of arguments; pass `None` (the default) to use the
        command-line arguments (``sys.argv[1:]``).

        The subclass must declare `argument_specs`, the CLI arguments &
        options specifications. See the class docstring.
        """
        parser = argparse.ArgumentParser(
            description=textwrap.dedent(cls.__doc__),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            # Help option added manually (below) for consistency:
            add_help=False,)
        for names, params in cls.argument_specs:
            parser.add_argument(*names, **params)
        names, params = cls.help_option_spec
        parser.add_argument(*names, **params)
        if argv is None:
            argv = sys.argv[1:]
        settings = parser.parse_args(argv)
        return settings


class PrintCLI(CLI):

    # Command-Line Interface implementation.

    """
    Print an SGF file (collection of game trees) in its plain form, with ANSI
    color highlighting of the SGF syntax unless disabled.
    """

    def execute(self):
        collection = load(self.settings.source_file)
        output = self.settings.output
        if hasattr(output, 'write'):
            print_sgf(output, collection, self.settings.color)
        elif output == '-':
            print_sgf(sys.stdout, collection, self.settings.color)
        else:
            with open(output, 'w', encoding=TEXT_ENCODING) as dest:
                print_sgf(dest, collection, self.settings.color)

    argument_specs = (
        (('source_file',),
         {'type': str,
          'nargs': '?',
          'default': '-',
          'help': ('Path to the SGF file to print. '
                   'Omit or use "-" to read from the standard input.')}),
        (('--output', '-o',),
         {'default': '-',
          'help': ('Specify output file path (default: "-", output to '
                   '<stdout>, standard output).')}),
        (('--no-color', '-n',),
         {'dest': 'color',
          'action': 'store_false',
          'help': ('Output plain SGF text (default: highlight the SGF '
                   'syntax with ANSI colors).')}),
        )


class NormalizerCLI(CLI):

    # Command-Line Interface implementation.

    """
    Normalize an SGF file (collection of game trees):

    * For any game tree with exactly one variation, combine the sequence of
      the variation with the sequence of the game tree itself.

    * Optionally strip out all variations (keep main game only).
    """

    def execute(self):
        collection = load(self.settings.source_file)
        if self.settings.main:
            collection = Collection(game.trunk() for game in collection)
        collection.normalize()
        save(collection, self.settings.output, self.settings.pretty_format)

    argument_specs = (
        (('source_file',),
         {'type': str,
          'nargs': '?',
          'default': '-',
          'help': ('Path to the SGF file to normalize. '
                   'Omit or use "-" to read from the standard input.')}),
        (('--output', '-o',),
         {'default': '-',
          'help': ('Specify output SGF file path (default: "-", output to '
                   '<stdout>, standard output).')}),
        (('--main', '-m',),
         {'action': 'store_true',
          'default': False,
          'help': 'Output the main game only. Strip out all variations.'}),
        (('--pretty-format', '-p',),
         {'action': 'store_true',
          'default': False,
          'help': ('Pretty-format the output SGF. '
                   '(CAUTION: output can become very large.)')}),
        )


if __name__ == '__main__':
    print(__doc__)
