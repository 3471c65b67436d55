"""Click CLI for operating docinbox outside the HTTP server."""

from __future__ import annotations

import asyncio
import json

import click

from docinbox.api.app import build_processor
from docinbox.config import AppConfig
from docinbox.errors import AppError, format_error_response, format_success_response
from docinbox.health.aggregator import HealthAggregator, default_probes
from docinbox.observability.logger import StructuredLogger
from docinbox.sms.sender import TwilioSmsSender
from docinbox.validation.validator import validate_outbound_sms
from docinbox.webhook.sms import SmsWebhookHandler


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """docinbox SMS intake and service health CLI."""
    ctx.ensure_object(dict)
    config = AppConfig.from_env()
    ctx.obj["config"] = config
    ctx.obj["logger"] = StructuredLogger.from_config(config)


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Probe dependent services and print the health report."""
    config: AppConfig = ctx.obj["config"]
    aggregator = HealthAggregator(
        default_probes(config),
        ctx.obj["logger"],
        environment=config.environment,
        version=config.version,
    )
    report = asyncio.run(aggregator.check())
    click.echo(report.model_dump_json(indent=2))
    if report.http_status != 200:
        ctx.exit(1)


@cli.command()
@click.option("--from", "sender", required=True, help="Sender phone number.")
@click.option("--body", required=True, help="Message text.")
@click.option("--media", multiple=True, help="Media URL (repeatable).")
@click.pass_context
def simulate(ctx: click.Context, sender: str, body: str, media: tuple[str, ...]) -> None:
    """Run a synthetic webhook delivery and print the XML reply."""
    config: AppConfig = ctx.obj["config"]
    logger: StructuredLogger = ctx.obj["logger"]
    form: dict[str, str] = {"From": sender, "Body": body, "NumMedia": str(len(media))}
    for index, url in enumerate(media):
        form[f"MediaUrl{index}"] = url

    handler = SmsWebhookHandler(build_processor(config, logger), logger)
    response = asyncio.run(handler.handle(form))
    click.echo(response.body)
    if not response.ok:
        ctx.exit(1)


@cli.command()
@click.argument("to")
@click.argument("body")
@click.pass_context
def send(ctx: click.Context, to: str, body: str) -> None:
    """Send an SMS through the configured provider."""
    config: AppConfig = ctx.obj["config"]
    logger: StructuredLogger = ctx.obj["logger"]
    try:
        request = validate_outbound_sms({"to": to, "body": body})
    except AppError as exc:
        click.echo(json.dumps(format_error_response(exc), indent=2))
        ctx.exit(1)

    sender = TwilioSmsSender.from_config(config, logger)
    result = asyncio.run(sender.send(request.to, request.body))
    if not result.success:
        error = AppError.internal(result.error or "SMS sending failed")
        click.echo(json.dumps(format_error_response(error), indent=2))
        ctx.exit(1)
    click.echo(json.dumps(
        format_success_response({"to": request.to}, result.message), indent=2,
    ))
