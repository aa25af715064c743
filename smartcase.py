"""
Word-case transducer.

Splits strings into words and separators and re-combines the words of one
string with the separators and per-word casing of another:

   combine("LastModifiedTime", "file_size") -> "last_modified_time"
   combine("LastModifiedTime", "FILE_SIZE") -> "LAST_MODIFIED_TIME"
   combine("reference_style", "Foo")        -> "ReferenceStyle"
"""

from dataclasses import dataclass
from enum import Enum
import re, functools, logging

# Order matters: a capitalized word wins over a one letter upper run, and an
# upper run gives its last letter back when lowercase letters follow.
RE_WORD = r'[a-z]+|[A-Z][a-z]+|[A-Z]+(?![a-z])'
RE_NON_WORD = r'[^A-Za-z]*'

WORD_PATTERN = re.compile(RE_WORD)
SINGLE_WORD_PATTERN = re.compile(f'({RE_NON_WORD})({RE_WORD})({RE_NON_WORD})')

logger = logging.getLogger(__name__)


class CaseStyle(Enum):
   LOWER = 'lower'
   UPPER = 'upper'
   CAPITALIZED = 'capitalized'

   @classmethod
   def of(cls, word: str) -> 'CaseStyle':
      if word == word.lower():
         return cls.LOWER
      elif word == word.upper():
         return cls.UPPER
      else:
         return cls.CAPITALIZED


@dataclass(frozen=True)
class Token:
   text: str
   start: int
   end: int

   @property
   def style(self) -> CaseStyle:
      return CaseStyle.of(self.text)


@dataclass(frozen=True)
class Segment:
   separator: str
   token: Token


@dataclass(frozen=True)
class Tokenization:
   segments: tuple[Segment, ...]
   trailing: str

   def __len__(self):
      return len(self.segments)

   def words(self) -> list[str]:
      return [s.token.text for s in self.segments]


def tokenize(source: str) -> Tokenization:
   """
   Split SOURCE into (separator, word) segments. Whatever follows the last
   word, or the whole source when there is no word, is kept as `trailing`.
   """
   segments = []
   end = 0

   for match in WORD_PATTERN.finditer(source):
      token = Token(match.group(0), match.start(), match.end())
      segments.append(Segment(source[end:token.start], token))
      end = token.end

   return Tokenization(tuple(segments), source[end:])


@functools.lru_cache(maxsize=1024)
def render(word: str, style: CaseStyle | None) -> str:
   if style is CaseStyle.LOWER:
      return word.lower()
   elif style is CaseStyle.UPPER:
      return word.upper()
   elif style is CaseStyle.CAPITALIZED:
      return word[:1].upper() + word[1:].lower()
   else:
      return word # No style seen yet, keep as inputted


def derive_repeating_style(styles_source: str, words_source: str) -> str:
   """
   Turn a one word style such as "Foo" into a two word pattern ("FooFoo") so
   it can be repeated over a multi word replacement. Returns STYLES_SOURCE
   unchanged when it is not a single word or WORDS_SOURCE is one.
   """
   match = SINGLE_WORD_PATTERN.fullmatch(styles_source)

   if not match or SINGLE_WORD_PATTERN.fullmatch(words_source):
      return styles_source

   prefix, word, suffix = match.groups()
   separator = suffix or prefix
   duplicate = word

   # Without a separator, a lowercase word repeats as camelCase
   if not separator and word.islower():
      duplicate = word[0].upper() + word[1:]

   return prefix + word + separator + duplicate + suffix


def combine(words_source: str, styles_source: str) -> str:
   """
   Render the words of WORDS_SOURCE with the separators and casing of
   STYLES_SOURCE, position by position. Once the styles run out the last
   separator and casing are repeated. The style step taken when the words
   run out skips one more style word; whatever follows it is copied through.
   """
   words = tokenize(words_source)
   styles = tokenize(styles_source)

   if len(styles) == 1 and len(words) > 1:
      styles_source = derive_repeating_style(styles_source, words_source)
      styles = tokenize(styles_source)
      logger.debug("Derived repeating style %r for %r", styles_source, words_source)

   buffer = []
   separator, style, rest = '', None, 0

   for i in range(len(words) + 1):
      if i < len(styles):
         style_segment = styles.segments[i]
         separator, style = style_segment.separator, style_segment.token.style
         rest = style_segment.token.end

      if i == len(words):
         break

      buffer.append(separator + render(words.segments[i].token.text, style))

   buffer.append(styles_source[rest:])

   return ''.join(buffer)
