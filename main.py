from difflib import SequenceMatcher
from pathlib import Path
from typing import Optional
from replacer import CaseAwareReplacer, FileIsBinaryError, SubstitutionSyntaxError, parse_substitution
from smartcase import combine
from rich import print
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
import os, re, sys, logging, typer

app = typer.Typer(help="Find and replace across naming conventions in one go.")
console = Console()

def rich_diff(old: str, new: str):
    buffer = []

    for op, i1, i2, j1, j2 in SequenceMatcher(None, old, new).get_opcodes():
        if op == 'equal':
            buffer.append(escape(old[i1:i2]))
            continue

        if i2 > i1:
            buffer.append(f"[red strike]{escape(old[i1:i2])}[/]")

        if j2 > j1:
            buffer.append(f"[green]{escape(new[j1:j2])}[/]")

    return ''.join(buffer)

def get_all_paths_to_replace(path: Path, replacer: CaseAwareReplacer, hidden=False):
    file_objects: list[Path] = []

    for root_str, dir_names, file_names in os.walk(path):
        if not hidden:
            dir_names[:] = [d for d in dir_names if not d.startswith('.')]
            file_names = [f for f in file_names if not f.startswith('.')]

        root_path = Path(root_str)
        file_objects += [root_path / f for f in file_names] \
                      + [root_path / d for d in dir_names]

    # Sort in a way so that no conflicts occur
    file_objects.sort(key=lambda x: (len(x.parts), len(x.name) * replacer.len_difference()), reverse=True)

    return file_objects

def new_table(*columns):
    table = Table()

    for column in columns:
        table.add_column(column)

    return table

def describe(error: OSError):
    return escape(error.strerror or str(error))

def error_cell(errors):
    return "[red]" + "; ".join(errors) + "[/]"

def print_replacements(replacer: CaseAwareReplacer):
    for old_str, new_str in replacer.get_replacements_made().items():
        print(f"{escape(old_str)} -> {escape(new_str)}")

@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log what is being done")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )

@app.command()
def convert(
    words: str = typer.Argument(..., help="Words to render"),
    styles: list[str] = typer.Argument(..., help="One or more style references"),
):
    """
    Print WORDS in the separators and casing of each of STYLES:\n
    \n
        smartcase convert LastModifiedTime file_size FILE_SIZE "File size"\n
    \n
    prints last_modified_time, LAST_MODIFIED_TIME and Last modified time.
    """
    for style in styles:
        console.print(combine(words, style), markup=False, highlight=False, soft_wrap=True)

@app.command()
def replace(
    old: str,
    new: str,
    dry: bool = typer.Option(False, envvar="SMARTCASE_DRY", help="Perform a dry run without making changes"),
    hidden: bool = typer.Option(False, envvar="SMARTCASE_HIDDEN", help="Also process hidden files and directories"),
    path: Path = typer.Argument(Path.cwd(), help="Root directory to process"),
):
    """
    Replace OLD with NEW in file names, directories, and file contents while respecting case:\n
    \n
        OLD = reference_style | NEW = smart_case\n
    \n
    Will replace, for example:\n
    \n
        ReferenceStyle -> SmartCase\n
        referenceStyle -> smartCase\n
        REFERENCE_STYLE -> SMART_CASE\n
        reference-style -> smart-case\n
    """
    if old == new:
        print("[red]Old and new are the same. No actions will be taken.[/]")
        raise typer.Exit(code=1)

    replacer = CaseAwareReplacer.from_words(old, new, dry_run=dry)

    table = new_table("Type", "Path", "Errors")

    with Live(table, auto_refresh=False) as live:
        for old_path in get_all_paths_to_replace(path, replacer, hidden):
            new_path = replacer.replace_path(old_path)
            relative_old_path = old_path.relative_to(path)
            relative_new_path = new_path.relative_to(path)
            type_text = ""
            errors = []

            try:
                replacer.replace_file_contents(old_path)
                type_text = "[yellow]File[/]"

            except IsADirectoryError:
                type_text = "[bright_black]Directory[/]"

            except FileIsBinaryError:
                type_text = "[bright_black]File (binary)[/]"

            except OSError as e:
                type_text = "[bright_black]File[/]"
                errors.append(describe(e))

            try:
                replacer.rename_file(old_path)

            except FileExistsError:
                errors.append(f"{escape(str(relative_new_path))} (conflict)")

            except OSError:
                errors.append("OS failed")

            table.add_row(
                type_text,
                rich_diff(str(relative_old_path), str(relative_new_path)),
                error_cell(errors)
            )
            live.update(table)

    print_replacements(replacer)

@app.command()
def sub(
    expr: str = typer.Argument(..., help="Substitution such as /pattern/replacement/flags count"),
    paths: Optional[list[Path]] = typer.Argument(None, help="Files to process, stdin to stdout if none"),
    line_range: Optional[str] = typer.Option(None, "--range", "-r", help="Lines to process: %, N, N,M or N,$"),
    style: Optional[str] = typer.Option(None, help="Style reference to use instead of the match"),
    style_group: Optional[int] = typer.Option(None, min=0, help="Take the style reference from this capture group"),
    previous: Optional[str] = typer.Option(None, help="Text that ~ expands to in the replacement"),
    dry: bool = typer.Option(False, envvar="SMARTCASE_DRY", help="Perform a dry run without making changes"),
    echo: bool = typer.Option(False, help="Show the computed substitution instead of running it"),
):
    """
    Substitute every match of a regular expression by the replacement
    rendered in the match's case style. The pattern is case-insensitive
    unless the I flag is given. In the replacement, & and \\0 stand for the
    match, \\1 to \\9 for groups and ~ for --previous.
    """
    if style is not None and style_group is not None:
        print("[red]Use either --style or --style-group, not both.[/]")
        raise typer.Exit(code=2)

    try:
        substitution = parse_substitution(expr)
        replacer = CaseAwareReplacer.from_substitution(
            substitution,
            styles=style_group if style_group is not None else style,
            previous=previous,
            dry_run=dry,
        )

    except SubstitutionSyntaxError as e:
        print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(code=2)

    if echo:
        styles = "the match" if replacer.styles is None else repr(replacer.styles)
        print(f"pattern:     {escape(replacer.pattern.pattern)}")
        print(f"ignore case: {bool(replacer.pattern.flags & re.IGNORECASE)}")
        print(f"words:       {escape(substitution.replacement)}")
        print(f"styles:      {escape(styles)}")
        print(f"flags:       {escape(substitution.flags)}")
        print(f"range:       {escape(line_range or '%')}, count: {substitution.count}")
        return

    if not paths:
        text = sys.stdin.read()

        try:
            new_text, found = replacer.replace(text, replacer.lines_in(line_range, text))

        except SubstitutionSyntaxError as e:
            print(f"[red]{escape(str(e))}[/]")
            raise typer.Exit(code=2)

        if replacer.count_only:
            typer.echo(f"{found} match(es)")
        else:
            typer.echo(new_text, nl=False)

        return

    table = new_table("Path", "Matches", "Errors")

    for file_path in paths:
        found = ""
        errors = []

        try:
            found = str(replacer.replace_file_contents(file_path, line_range))

        except IsADirectoryError:
            errors.append("is a directory")

        except FileIsBinaryError:
            errors.append("binary file")

        except SubstitutionSyntaxError as e:
            errors.append(escape(str(e)))

        except OSError as e:
            errors.append(describe(e))

        table.add_row(escape(str(file_path)), found, error_cell(errors))

    print(table)

    if not replacer.count_only:
        print_replacements(replacer)

if __name__ == "__main__":
    app()
