"""Summarize command for aoe."""

import click

from ...core.summary_poller import SummaryRequest, summarize as run_summarizer


@click.command()
@click.argument('capture', type=click.File('r'), default='-')
@click.option('--binary', default='claude', show_default=True, help='Summarizer executable')
@click.pass_context
def summarize(ctx, capture, binary):
    """Summarize captured terminal output with a small model"""
    result = run_summarizer(SummaryRequest(session_id="cli", terminal_output=capture.read()), binary)
    if result.is_error:
        click.echo(result.summary, err=True)
        ctx.exit(1)
    click.echo(result.summary)
