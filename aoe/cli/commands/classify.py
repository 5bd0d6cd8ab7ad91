"""Classify command for aoe."""

import click

from ...core.status_detection import classify as classify_content


@click.command()
@click.argument('capture', type=click.File('r'), default='-')
@click.option('--tool', '-t', default='claude', show_default=True,
              help='Agent running in the pane (claude, opencode, codex, vibe, gemini, shell)')
@click.option('--title', default='', help='Pane title (used for gemini)')
def classify(capture, tool, title):
    """Print the activity status of captured pane text"""
    status = classify_content(capture.read(), tool, title)
    click.echo(status.value)
