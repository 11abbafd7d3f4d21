"""Narrative period reports and their PDF export."""
import asyncio
import logging

from finbot.core.exceptions import ReportTooLongError
from finbot.dialog import keyboards
from finbot.dialog.callbacks import ExportReport, ShowReport
from finbot.dialog.router import FlowRouter
from finbot.locales.translations import get_text
from finbot.services.pdf_report import PdfReportBuilder, report_filename
from finbot.services.report_service import ReportService, render_text
from finbot.utils.timeutil import local_now

logger = logging.getLogger(__name__)

router = FlowRouter("reports")


@router.action('show_stats', 'stats_back')
async def show_stats(ctx, action):
    ctx.reset()
    ctx.edit(get_text('select_period'), keyboards.period_menu())


@router.callback(ShowReport)
async def show_report(ctx, command: ShowReport):
    report = await ReportService(ctx.service, ctx.tz).build(command.period)
    try:
        text = render_text(report.aggregation, command.period, ctx.currency)
    except ReportTooLongError as e:
        logger.warning(f"Report not sent: {e}", extra={'user_id': ctx.user.id, 'operation': 'report'})
        ctx.edit(get_text('report_too_long'), keyboards.period_menu())
        return
    ctx.edit(text, keyboards.report_actions(command.period))


@router.callback(ExportReport)
async def export_report(ctx, command: ExportReport):
    report = await ReportService(ctx.service, ctx.tz).build(command.period)
    builder = PdfReportBuilder(ctx.currency)
    content = await asyncio.to_thread(builder.build, report, local_now(ctx.tz))
    logger.info(f"PDF report generated ({len(content)} bytes)",
                extra={'user_id': ctx.user.id, 'operation': 'export_report'})
    ctx.document(
        report_filename(report),
        content,
        caption=get_text('report_caption', period=get_text(f'period_{command.period}')),
    )
