"""
AI summary of selected patient reports, and the follow-on report chat.

Summaries are produced by an external webhook and cached in the caller's
session under a key scoped to the patient and the sorted report selection:

    ai_summary_<patient_id>_<id1>_<id2>...      rendered summary HTML
    ai_summary_<patient_id>_<id1>_<id2>..._extracted   extracted report text
    ai_summary_<patient_id>_<id1>_<id2>..._chat        chat messages
"""
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

import requests
from django.conf import settings
from django.utils import timezone

from apps.clinical.models import PatientReport
from apps.clinical.summary_html import render_summary_html, strip_fences
from apps.clinical.utils_storage import ResolvedUrl, resolve_signed_url
from apps.core.observability import metrics
from apps.core.observability.events import log_ai_summary_generated

logger = logging.getLogger(__name__)

CHAT_HISTORY_LIMIT = 10
CHAT_FALLBACK_ANSWER = "I received your question but couldn't generate a response."
DEFAULT_CONFIDENCE = 'medium'


class AISummaryError(Exception):
    """AI summary could not be produced; the message is shown to the doctor."""
    pass


class AISummaryInputError(AISummaryError):
    """Bad selection or question, detected before calling the webhook."""
    pass


class ReportChatError(AISummaryError):
    pass


class ReportChatInputError(ReportChatError, AISummaryInputError):
    pass


def summary_cache_key(patient_id, report_ids) -> str:
    return f"ai_summary_{patient_id}_{'_'.join(sorted(str(r) for r in report_ids))}"


@dataclass
class AISummaryResult:
    summary_html: str
    extracted_text: Optional[str] = None
    report_ids: List[str] = field(default_factory=list)
    from_cache: bool = False


@dataclass
class ChatAnswer:
    answer: str
    confidence: str
    history: List[dict] = field(default_factory=list)


def _post_webhook(url: str, payload: dict, error_class=AISummaryError):
    """POST JSON to a webhook and return the decoded body. No retry."""
    try:
        response = requests.post(
            url,
            json=payload,
            timeout=settings.AI_WEBHOOK_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise error_class(f'AI service request failed: {e}') from e

    if not response.ok:
        raise error_class(f'AI service returned status {response.status_code}')

    try:
        return response.json()
    except ValueError as e:
        raise error_class('AI service returned an invalid (non-JSON) response') from e


@metrics.track_duration(metrics.ai_summary_duration_seconds)
def _post_summary_webhook(url: str, payload: dict):
    return _post_webhook(url, payload)


@metrics.track_duration(metrics.report_chat_duration_seconds)
def _post_chat_webhook(url: str, payload: dict):
    return _post_webhook(url, payload, error_class=ReportChatError)


class AISummaryOrchestrator:
    """
    Generates and restores AI summaries for a report selection.

    Args:
        session: Mapping used as the per-client cache (request.session)
        webhook_url: Summary webhook (default AI_SUMMARY_WEBHOOK_URL)
    """

    def __init__(self, session, webhook_url=None):
        self.session = session
        self.webhook_url = webhook_url if webhook_url is not None else settings.AI_SUMMARY_WEBHOOK_URL

    def clear(self, patient_id, report_ids):
        key = summary_cache_key(patient_id, report_ids)
        for suffix in ('', '_extracted', '_chat'):
            self.session.pop(key + suffix, None)

    def restore(self, patient_id, report_ids) -> Optional[AISummaryResult]:
        """Cached summary for this selection, without any network call."""
        report_ids = [str(r) for r in report_ids]
        if not report_ids:
            return None

        key = summary_cache_key(patient_id, report_ids)
        cached = self.session.get(key)
        if cached is None:
            return None

        return AISummaryResult(
            summary_html=strip_fences(cached),
            extracted_text=self.session.get(key + '_extracted'),
            report_ids=sorted(report_ids),
            from_cache=True,
        )

    def _build_report_payload(self, patient_id, report_ids) -> List[dict]:
        reports = PatientReport.objects.filter(
            patient_id=patient_id,
            id__in=report_ids,
            is_deleted=False,
        ).order_by('-upload_date')

        items = []
        for report in reports:
            signed = resolve_signed_url(settings.MINIO_REPORTS_BUCKET, report.file_url)
            if not isinstance(signed, ResolvedUrl):
                # Unsignable files are left out of the analysis
                continue
            items.append({
                'id': str(report.id),
                'name': report.report_name,
                'type': report.report_type,
                'file_url': signed.url,
                'upload_date': report.upload_date.isoformat(),
                'file_size': report.file_size,
                'file_type': report.file_type,
            })
        return items

    def generate(self, patient_id, doctor_id, report_ids) -> AISummaryResult:
        """
        Send the selected reports to the summary webhook and cache the
        rendered result.

        Raises:
            AISummaryError: Empty selection, no usable report, webhook
                unreachable, non-2xx, non-JSON or empty answer
        """
        report_ids = [str(r) for r in report_ids]
        if not report_ids:
            raise AISummaryInputError('Select at least one report to generate AI analysis.')
        if not self.webhook_url:
            raise AISummaryError('AI summary service is not configured')

        self.clear(patient_id, report_ids)

        items = self._build_report_payload(patient_id, report_ids)
        if not items:
            raise AISummaryInputError('None of the selected reports could be prepared for AI analysis.')

        payload = {
            'reports': items,
            'patient_id': str(patient_id),
            'doctor_id': str(doctor_id),
            'timestamp': timezone.now().isoformat(),
            'options': {
                'output_format': 'html',
                'chunked': True,
            },
        }

        start = time.time()
        try:
            data = _post_summary_webhook(self.webhook_url, payload)
        except AISummaryError as e:
            metrics.ai_summary_requests_total.labels(result='failure').inc()
            log_ai_summary_generated(
                patient_id, report_ids, round((time.time() - start) * 1000, 2),
                result='failure', error=str(e),
            )
            raise

        if isinstance(data, list):
            data = data[0] if data else {}
        if not isinstance(data, dict):
            data = {}

        text = data.get('summary') or data.get('output')
        if not isinstance(text, str) or not text.strip():
            metrics.ai_summary_requests_total.labels(result='empty').inc()
            raise AISummaryError('AI service returned an empty summary')

        summary_html = render_summary_html(text)
        extracted_text = data.get('extracted_text') or None

        key = summary_cache_key(patient_id, report_ids)
        self.session[key] = summary_html
        if extracted_text:
            self.session[key + '_extracted'] = extracted_text

        metrics.ai_summary_requests_total.labels(result='success').inc()
        log_ai_summary_generated(
            patient_id, report_ids, round((time.time() - start) * 1000, 2),
            sent_report_count=len(items),
            has_extracted_text=bool(extracted_text),
        )

        return AISummaryResult(
            summary_html=summary_html,
            extracted_text=extracted_text,
            report_ids=sorted(report_ids),
        )


class ReportChat:
    """
    Question/answer chat over the text extracted by the last summary of a
    report selection. Messages are kept in the session, per selection.
    """

    def __init__(self, session, webhook_url=None):
        self.session = session
        self.webhook_url = webhook_url if webhook_url is not None else settings.REPORT_CHAT_WEBHOOK_URL

    def history(self, patient_id, report_ids) -> List[dict]:
        return list(self.session.get(summary_cache_key(patient_id, report_ids) + '_chat', []))

    def ask(self, question, patient_id, doctor_id, report_ids) -> ChatAnswer:
        question = (question or '').strip()
        if not question:
            raise ReportChatInputError('Question is required')

        report_ids = [str(r) for r in report_ids]
        key = summary_cache_key(patient_id, report_ids)
        extracted_text = self.session.get(key + '_extracted')
        if not extracted_text:
            raise ReportChatInputError('Please generate AI Summary first before using chat.')
        if not self.webhook_url:
            raise ReportChatError('Report chat service is not configured')

        history = self.history(patient_id, report_ids)
        payload = {
            'question': question,
            'extractedText': extracted_text,
            'chatHistory': history[-CHAT_HISTORY_LIMIT:],
            'patientId': str(patient_id),
            'reportIds': report_ids,
            'doctorId': str(doctor_id),
        }

        try:
            data = _post_chat_webhook(self.webhook_url, payload)
        except ReportChatError:
            metrics.report_chat_requests_total.labels(result='failure').inc()
            raise

        if not isinstance(data, dict):
            data = {}
        answer = data.get('answer') or CHAT_FALLBACK_ANSWER
        confidence = data.get('confidence') or DEFAULT_CONFIDENCE

        history.append({'role': 'user', 'content': question})
        history.append({'role': 'assistant', 'content': answer})
        self.session[key + '_chat'] = history

        metrics.report_chat_requests_total.labels(result='success').inc()
        return ChatAnswer(answer=answer, confidence=confidence, history=history)
