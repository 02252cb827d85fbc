"""TM7 Convert - Command Line Interface."""

import logging
import sys
from pathlib import Path
import click

from . import __version__
from .converter import TM7_SUFFIX, load_tm7, save_tm7, TM7ParseError, TM7ExportError
from .dfd_generator import DFDGenerator
from .graph_io import GraphFileError, dump_graph, is_graph_file, load_graph
from .schemas import Graph
from .validator import check_graph


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='[%(levelname)s] %(name)s: %(message)s',
    )


def _load_any(path: str) -> Graph:
    if is_graph_file(path):
        return load_graph(path)
    return load_tm7(path)


@click.group()
@click.version_option(version=__version__)
def cli():
    """TM7 Convert - Threat Modeling Tool file converter."""
    pass


@cli.command()
@click.argument('tm7_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def inspect(tm7_file: str, verbose: bool):
    """Decode a .tm7 file and summarise its contents."""
    _configure_logging(verbose)
    try:
        graph = load_tm7(tm7_file)
    except TM7ParseError as e:
        click.echo(click.style(f'Failed to read {tm7_file} ({e.kind.value}): {e}', fg='red'), err=True)
        sys.exit(1)

    click.echo(click.style('Decoded successfully!', fg='green'))
    click.echo(f'  Model: {graph.metadata.name}')
    click.echo(f'  Version: {graph.metadata.version}')
    if graph.metadata.owner:
        click.echo(f'  Owner: {graph.metadata.owner}')
    click.echo(f'  Nodes: {len(graph.nodes)}')
    click.echo(f'  Edges: {len(graph.edges)}')
    click.echo(f'  Boundaries: {len(graph.boundaries)}')

    issues = check_graph(graph)
    if issues:
        click.echo(click.style(f'\n{len(issues)} structural issue(s):', fg='yellow'))
        for issue in issues:
            color = 'red' if issue.severity == 'error' else 'yellow'
            click.echo(click.style(f'  [{issue.severity}] {issue.code}: {issue.message}', fg=color))


@cli.command()
@click.argument('source', type=click.Path(exists=True, dir_okay=False))
@click.argument('output', type=click.Path(dir_okay=False))
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def convert(source: str, output: str, verbose: bool):
    """Convert between .tm7 and YAML/JSON graph files.

    The direction follows the file suffixes: SOURCE.tm7 to OUTPUT.yaml/.yml/.json,
    or SOURCE.yaml/.yml/.json to OUTPUT.tm7.
    """
    _configure_logging(verbose)
    source_is_tm7 = Path(source).suffix.lower() == TM7_SUFFIX
    output_is_tm7 = Path(output).suffix.lower() == TM7_SUFFIX

    try:
        if source_is_tm7 and is_graph_file(output):
            graph = load_tm7(source)
            written = dump_graph(graph, output)
        elif is_graph_file(source) and output_is_tm7:
            graph = load_graph(source)
            written = save_tm7(graph, output)
        else:
            click.echo(click.style(
                'Unsupported conversion: expected .tm7 -> .yaml/.yml/.json or .yaml/.yml/.json -> .tm7',
                fg='red'), err=True)
            sys.exit(1)
    except TM7ParseError as e:
        click.echo(click.style(f'Failed to read {source}: {e}', fg='red'), err=True)
        sys.exit(1)
    except TM7ExportError as e:
        click.echo(click.style(f'Failed to export {output}: {e}', fg='red'), err=True)
        sys.exit(1)
    except GraphFileError as e:
        click.echo(click.style(f'Graph file error: {e}', fg='red'), err=True)
        sys.exit(1)

    click.echo(click.style('Conversion successful!', fg='green'))
    click.echo(f'  Output: {written}')
    click.echo(f'  Nodes: {len(graph.nodes)}, Edges: {len(graph.edges)}, Boundaries: {len(graph.boundaries)}')


@cli.command()
@click.argument('model_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(), help='Output file path')
@click.option('--format', '-f', 'output_format', type=click.Choice(['svg', 'png', 'pdf', 'dot', 'mermaid']), default='svg')
def dfd(model_file: str, output: str, output_format: str):
    """Generate a Data Flow Diagram preview for a .tm7 or graph file."""
    try:
        graph = _load_any(model_file)
    except (TM7ParseError, GraphFileError) as e:
        click.echo(click.style(f'Failed to generate DFD: {e}', fg='red'), err=True)
        sys.exit(1)

    if not graph.nodes:
        click.echo(click.style('No nodes defined in this threat model.', fg='yellow'))
        return

    generator = DFDGenerator(graph)

    if output_format in ('mermaid', 'dot'):
        text = generator.to_mermaid() if output_format == 'mermaid' else generator.generate_dot()
        if output:
            Path(output).write_text(text)
            click.echo(click.style(f'DFD generated: {output}', fg='green'))
        else:
            click.echo(text)
        return

    output_path = output or str(Path(model_file).with_suffix('')) + '-dfd'
    output_file = generator.render_to_file(output_path, output_format)
    click.echo(click.style(f'DFD generated: {output_file}', fg='green'))


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
