from dataclasses import dataclass
from pathlib import Path
from smartcase import combine, tokenize
import re, logging

RE_BOUNDARIES = r'[-_ ]*'
RE_FLEXIBLE = re.compile(r'([-_ ]+)')
RE_PLACEHOLDER = re.compile(r'\\.|[&~]', re.DOTALL)
RE_TAIL = re.compile(r'([a-zA-Z]*)\s*(\d*)')

FLAGS = 'giIn'
BAD_DELIMITERS = '\\"|'

logger = logging.getLogger(__name__)


class FileIsBinaryError(Exception):
    pass


class SubstitutionSyntaxError(ValueError):
    pass


@dataclass(frozen=True)
class Substitution:
    pattern: str
    replacement: str = ''
    flags: str = ''
    count: int | None = None


@dataclass(frozen=True)
class LineRange:
    start: int
    end: int

    def narrow(self, count, line_count):
        """Keep COUNT lines starting at the last line of the range."""
        return LineRange(self.end, max(min(self.end + count - 1, line_count), self.end))

    def __contains__(self, line_number):
        return self.start <= line_number <= self.end


def expand_placeholders(text: str, match: re.Match, previous: str | None = None):
    """
    Resolve & and \\0 (whole match), \\1 to \\9 (groups) and ~ (PREVIOUS, when
    given) in TEXT. Any other escape is left as is.
    """
    def expand(placeholder):
        token = placeholder.group(0)

        if token == '&':
            return match.group(0)

        if token == '~':
            return token if previous is None else previous

        if token[1] in '0123456789':
            group = int(token[1])
            return (match.group(group) or '') if group <= match.re.groups else ''

        return token

    return RE_PLACEHOLDER.sub(expand, text)


def resolve_source(source: str | int, match: re.Match, previous: str | None = None):
    if isinstance(source, int):
        return (match.group(source) or '') if 0 <= source <= match.re.groups else ''

    return expand_placeholders(source, match, previous)


def separator_parts(text):
    """Split TEXT into runs of -, _ or spaces and the literal text between them."""
    return [part for part in RE_FLEXIBLE.split(text) if part]


def literal_parts(source):
    """The literal separator text of SOURCE (digits, dots, ...) in order."""
    tokens = tokenize(source)
    texts = [s.separator for s in tokens.segments] + [tokens.trailing]

    return [p for text in texts for p in separator_parts(text) if not RE_FLEXIBLE.fullmatch(p)]


def split_unescaped(text, delimiter):
    parts = ['']
    i = 0

    while i < len(text):
        char = text[i]

        if char == '\\' and i + 1 < len(text):
            following = text[i + 1]
            parts[-1] += following if following == delimiter else char + following
            i += 2
            continue

        if char == delimiter:
            parts.append('')
        else:
            parts[-1] += char

        i += 1

    return parts


def parse_substitution(expr: str) -> Substitution:
    """
    Parse a delimited substitution such as /pattern/replacement/flags count.
    """
    if not expr:
        raise SubstitutionSyntaxError("Empty substitution")

    delimiter = expr[0]

    if delimiter.isalnum() or delimiter.isspace() or delimiter in BAD_DELIMITERS:
        raise SubstitutionSyntaxError(f"Invalid delimiter {delimiter!r}")

    parts = split_unescaped(expr[1:], delimiter)

    if len(parts) > 3:
        raise SubstitutionSyntaxError(f"Too many {delimiter!r} delimiters")

    pattern, replacement, tail = parts + [''] * (3 - len(parts))

    if not pattern:
        raise SubstitutionSyntaxError("Empty pattern")

    tail_match = RE_TAIL.fullmatch(tail.strip())

    if not tail_match:
        raise SubstitutionSyntaxError(f"Trailing characters: {tail.strip()}")

    flags, count = tail_match.groups()
    unknown = set(flags) - set(FLAGS)

    if unknown:
        raise SubstitutionSyntaxError(f"Unknown flags: {''.join(sorted(unknown))}")

    if count and int(count) == 0:
        raise SubstitutionSyntaxError("Count must be positive")

    return Substitution(pattern, replacement, flags, int(count) if count else None)


def parse_range(text: str | None, line_count: int) -> LineRange:
    """
    Parse "%", "N", "N,M" or "N,$" into a 1-based inclusive range.
    """
    text = (text or '%').strip()
    last = max(line_count, 1)

    if text == '%':
        return LineRange(1, last)

    def line_number(value):
        value = value.strip()

        if value == '$':
            return last

        if not value.isdigit():
            raise SubstitutionSyntaxError(f"Invalid line number: {value!r}")

        return int(value)

    bounds = [line_number(x) for x in text.split(',')]

    if len(bounds) > 2:
        raise SubstitutionSyntaxError(f"Invalid range: {text!r}")

    start, end = bounds[0], bounds[-1]

    if not 1 <= start <= end <= last:
        raise SubstitutionSyntaxError(f"Range {text!r} out of bounds (1-{last})")

    return LineRange(start, end)


class CaseAwareReplacer:
    def __init__(self, pattern, replacement, *, styles=None, flags='g', count=None,
                 previous=None, literal=False, dry_run=False):
        try:
            self._pattern = re.compile(pattern, 0 if 'I' in flags else re.IGNORECASE)
        except re.error as e:
            raise SubstitutionSyntaxError(f"Invalid pattern {pattern!r}: {e}") from e

        self._find = pattern
        self._new = replacement
        self._styles = styles
        self._flags = flags
        self._count = count
        self._previous = previous
        self._literal = literal
        self._dry_run = dry_run
        self._replacements = {}
        self._literal_count = 0
        self._new_literals = []

        logger.debug("Compiled %r with flags %r", self._pattern.pattern, flags)

    @classmethod
    def from_words(cls, old_str, new_str, **kwargs):
        """
        Match OLD_STR in any case convention: runs of -, _ or spaces in it
        become optional and any run may stand between two words. Other
        separator text must match as written and is swapped for the
        corresponding separator text of NEW_STR.
        """
        tokens = tokenize(old_str)
        buffer = []
        literals = 0

        def add_separator(text, between_words=False):
            nonlocal literals

            for part in separator_parts(text):
                if RE_FLEXIBLE.fullmatch(part):
                    buffer.append(RE_BOUNDARIES)
                else:
                    buffer.append(f'(?P<literal{literals}>{re.escape(part)})')
                    literals += 1

            if between_words and not RE_FLEXIBLE.search(text):
                buffer.append(RE_BOUNDARIES)

        for i, segment in enumerate(tokens.segments):
            add_separator(segment.separator, between_words=i > 0)
            buffer.append(re.escape(segment.token.text))

        if tokens.segments:
            add_separator(tokens.trailing)
        else:
            buffer, literals = [re.escape(old_str)], 0

        replacer = cls(''.join(buffer), new_str, flags='g', literal=True, **kwargs)
        replacer._find = old_str
        replacer._literal_count = literals
        replacer._new_literals = literal_parts(new_str)

        return replacer

    @classmethod
    def from_substitution(cls, substitution: Substitution, **kwargs):
        return cls(
            substitution.pattern,
            substitution.replacement,
            flags=substitution.flags,
            count=substitution.count,
            **kwargs
        )

    @property
    def pattern(self):
        return self._pattern

    @property
    def styles(self):
        return self._styles

    @property
    def count_only(self):
        return 'n' in self._flags

    def lines_in(self, range_text, base_str):
        """
        The LineRange of BASE_STR selected by RANGE_TEXT and the count, or
        None for every line.
        """
        if range_text is None and self._count is None:
            return None

        line_count = len(base_str.splitlines())
        line_range = parse_range(range_text, line_count)

        if self._count:
            line_range = line_range.narrow(self._count, line_count)

        return line_range

    def len_difference(self):
        return len(self._new) - len(self._find)

    def words_source(self, match):
        if self._literal:
            return self._new

        return expand_placeholders(self._new, match, self._previous)

    def styles_source(self, match):
        if self._styles is not None:
            return resolve_source(self._styles, match, self._previous)

        text = match.group(0)

        if not self._literal_count:
            return text

        buffer = []
        end = 0

        for i in range(self._literal_count):
            start, stop = (x - match.start() for x in match.span(f'literal{i}'))

            # The last literal takes whatever NEW_STR has left over
            if i == self._literal_count - 1:
                part = ''.join(self._new_literals[i:])
            else:
                part = self._new_literals[i] if i < len(self._new_literals) else ''

            buffer.append(text[end:start] + part)
            end = stop

        buffer.append(text[end:])

        return ''.join(buffer)

    def replace_match(self, match):
        old = match.group(0)
        new = combine(self.words_source(match), self.styles_source(match))
        self._replacements[old] = new

        return new

    def replace(self, base_str: str, line_range: LineRange | None = None):
        """
        Replace matches line by line within LINE_RANGE (all lines by default).
        Returns the new string and the number of matches.
        """
        count = 0 if 'g' in self._flags else 1
        lines = base_str.splitlines(keepends=True)
        total = 0

        for i, line in enumerate(lines):
            if line_range is not None and i + 1 not in line_range:
                continue

            body = line.rstrip('\r\n')
            ending = line[len(body):]

            if 'n' in self._flags:
                found = len(self._pattern.findall(body))
                total += found if not count else min(found, count)
                continue

            body, found = self._pattern.subn(self.replace_match, body, count=count)
            lines[i] = body + ending
            total += found

        return ''.join(lines), total

    def replace_path(self, path: Path):
        new_name, _ = self.replace(path.name)

        return path.with_name(new_name)

    def replace_file_contents(self, path: Path, range_text: str | None = None):
        if path.is_dir():
            raise IsADirectoryError(path)

        data = path.read_bytes()

        if b'\0' in data:
            raise FileIsBinaryError(path)

        try:
            old_text = data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FileIsBinaryError(path) from e

        new_text, found = self.replace(old_text, self.lines_in(range_text, old_text))

        if new_text != old_text and not self._dry_run:
            path.write_bytes(new_text.encode('utf-8'))

        logger.debug("%s: %d replacement(s)", path, found)

        return found

    def rename_file(self, path: Path):
        new_path = self.replace_path(path)

        if new_path == path:
            return path

        if new_path.exists():
            raise FileExistsError(new_path)

        if not self._dry_run:
            path.rename(new_path)

        return new_path

    def get_replacements_made(self):
        return dict(self._replacements)
