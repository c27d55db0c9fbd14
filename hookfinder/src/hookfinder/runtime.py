import logging
from typing import Optional

from hookfinder.src.hookfinder.config import Settings, get_settings
from hookfinder.src.hookfinder.installer import InterceptionInstaller
from hookfinder.src.hookfinder.models.resolution import InstallReport, ResolutionResult
from hookfinder.src.hookfinder.notifier import EventNotifier, LogPresenter, Presenter
from hookfinder.src.hookfinder.query_service import QueryService
from hookfinder.src.hookfinder.session import ObservationSession
from hookfinder.src.hookfinder.status import FeatureStatus
from hookfinder.src.hookfinder.substrate import InterceptionSubstrate
from hookfinder.src.hookfinder.targets import follow_status_matcher, identifier_lookup, story_matcher

logger = logging.getLogger(__name__)


class HookRuntime:
    """
    The one-time startup pass: resolve every target against the query
    service and install observers for whatever was found. Not re-entrant;
    call `install_all()` once per loaded binary.
    """

    def __init__(self, query: QueryService, substrate: InterceptionSubstrate,
                 settings: Optional[Settings] = None, session: Optional[ObservationSession] = None,
                 presenter: Optional[Presenter] = None, status: Optional[FeatureStatus] = None):
        self.query = query
        self.settings = settings or get_settings()
        self.session = session or ObservationSession(clear_delay=self.settings.focus_clear_delay)
        self.status = status or FeatureStatus()
        self.notifier = EventNotifier(self.session, self.settings, presenter or LogPresenter())
        self.installer = InterceptionInstaller(substrate, self.status)

    def install_all(self) -> InstallReport:
        report = InstallReport()
        self._install_follow_status(report)
        self._install_story_signals(report)
        logger.info("Startup pass done: %d hooks installed, %d failed",
                    len(report.hooked), len(report.errors))
        return report

    def _install_follow_status(self, report: InstallReport) -> None:
        outcome = follow_status_matcher().resolve(self.query)
        report.resolutions.append(outcome)
        if not isinstance(outcome, ResolutionResult):
            return

        identifier_type = identifier_lookup().lookup(self.query, outcome.owning_type)
        for hook in self.installer.install_follow_status(outcome, self.notifier, identifier_type):
            report.record(hook)

    def _install_story_signals(self, report: InstallReport) -> None:
        matches = story_matcher(self.settings.story_probe_fallback).match(self.query)
        if not matches:
            logger.info("No story signal getters found; story detection stays off")
            return
        for hook in self.installer.install_story_signals(matches, self.notifier):
            report.record(hook)
