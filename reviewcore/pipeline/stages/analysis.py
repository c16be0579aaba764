"""Analysis stages: the PR-level pass and the per-file pass.

Files are analyzed concurrently on a bounded thread pool. A file whose
analysis raises is recorded in ``context.errors`` and contributes no
suggestions; every other file still contributes its results.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.config import PipelineSettings
from reviewcore.enums.pipeline import StageVisibility
from reviewcore.models.results import FileAnalysisResult, PrAnalysisResult
from reviewcore.pipeline.context import StageError
from reviewcore.pipeline.stage import PipelineStage
from reviewcore.suggestions.ranking import (
    assign_rank_scores,
    ensure_suggestion_ids,
    filter_by_review_options,
)
from reviewcore.suggestions.service import (
    build_code_patch,
    filter_suggestions_by_diff,
    remove_suggestions_related_to_saved_files,
    suggestions_to_verify,
)

if TYPE_CHECKING:
    from reviewcore.config import CodeReviewConfig
    from reviewcore.models.pull_request import FileChange
    from reviewcore.models.suggestion import CodeSuggestion
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import AIAnalysisService, PullRequestsService
    from reviewcore.suggestions.service import SuggestionService


class ProcessFilesPrLevelReviewStage(PipelineStage):
    """Run the PR-level and cross-file analysis passes."""

    stage_name = "ProcessFilesPrLevelReviewStage"
    visibility = StageVisibility.PRIMARY

    def __init__(self, ai_analysis: AIAnalysisService) -> None:
        self._ai_analysis = ai_analysis

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        config = context.code_review_config
        if config is None or not context.changed_files:
            return context

        try:
            result = self._ai_analysis.analyze_pull_request(
                context.organization_and_team,
                context.pull_request,
                context.changed_files,
                config,
            )
        except Exception as e:
            logger.error(
                f"PR-level analysis failed for PR#{context.pull_request.number}: {e}",
            )
            return context.with_error(self.stage_name, e)

        by_pr = filter_by_review_options(
            config.review_options,
            ensure_suggestion_ids(result.valid_suggestions_by_pr),
        )
        cross_file = assign_rank_scores(
            filter_by_review_options(
                config.review_options,
                ensure_suggestion_ids(result.valid_cross_file_suggestions),
            ),
        )
        logger.info(
            f"PR-level analysis for PR#{context.pull_request.number}: "
            f"{len(by_pr)} PR-level, {len(cross_file)} cross-file suggestions",
        )
        return self.update_context(
            context,
            pr_analysis_results=PrAnalysisResult(
                valid_suggestions_by_pr=by_pr,
                valid_cross_file_suggestions=cross_file,
            ),
        )


class ProcessFilesReviewStage(PipelineStage):
    """Analyze each changed file and collect its suggestions.

    Cross-file suggestions that target a file are merged into that
    file's results before filtering. On a re-review of a pull request,
    files that already carry saved suggestions get no new ones, and the
    saved suggestions are checked against the new commits.
    """

    stage_name = "ProcessFilesReviewStage"
    visibility = StageVisibility.PRIMARY

    def __init__(
        self,
        ai_analysis: AIAnalysisService,
        settings: PipelineSettings | None = None,
        pull_requests: PullRequestsService | None = None,
        suggestion_service: SuggestionService | None = None,
    ) -> None:
        self._ai_analysis = ai_analysis
        self._settings = settings or PipelineSettings()
        self._pull_requests = pull_requests
        self._suggestion_service = suggestion_service

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        config = context.code_review_config
        files = context.changed_files
        if config is None or not files:
            logger.warning(
                f"No files to analyze for PR#{context.pull_request.number}",
            )
            return context

        results: dict[str, FileAnalysisResult] = {}
        errors: list[StageError] = []
        workers = min(self._settings.max_parallel_files, len(files))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self._analyze_file, context, config, file): file
                for file in files
            }
            for future in as_completed(futures):
                file = futures[future]
                try:
                    results[file.filename] = future.result()
                except Exception as e:
                    logger.error(f"Error processing file {file.filename}: {e}")
                    errors.append(
                        StageError(
                            stage=self.stage_name,
                            error=str(e),
                            substage=file.filename,
                        ),
                    )

        # Aggregate in file order so the outcome does not depend on timing.
        valid: list[CodeSuggestion] = []
        discarded: list[CodeSuggestion] = []
        saved: list[CodeSuggestion] = []
        metadata: dict[str, dict] = {}
        for file in files:
            result = results.get(file.filename)
            if result is None:
                continue
            valid.extend(result.valid_suggestions)
            discarded.extend(result.discarded_suggestions)
            saved.extend(result.saved_suggestions)
            metadata[file.filename] = result.metadata

        logger.info(
            f"Analyzed {len(results)}/{len(files)} files for "
            f"PR#{context.pull_request.number}: {len(valid)} valid, "
            f"{len(discarded)} discarded suggestions",
        )
        if saved:
            self._verify_implemented(context, files, saved)

        return self.update_context(
            context,
            valid_suggestions=valid,
            discarded_suggestions=discarded,
            file_metadata=metadata,
            errors=(*context.errors, *errors),
        )

    def _analyze_file(
        self,
        context: PipelineContext,
        config: CodeReviewConfig,
        file: FileChange,
    ) -> FileAnalysisResult:
        analysis = self._ai_analysis.analyze_file(
            context.organization_and_team,
            context.pull_request,
            file,
            config,
        )
        saved = self._load_saved_suggestions(context, file)
        cross_file = [
            s
            for s in context.valid_cross_file_suggestions
            if s.relevant_file == file.filename
        ]
        if analysis is None and not cross_file:
            return FileAnalysisResult(filename=file.filename, saved_suggestions=saved)

        suggestions = ensure_suggestion_ids(
            [*(analysis.code_suggestions if analysis else []), *cross_file],
        )
        enabled = filter_by_review_options(config.review_options, suggestions)
        in_diff = filter_suggestions_by_diff(file.patch, enabled, file.filename)
        in_diff_ids = {s.id for s in in_diff}
        outside_diff = [s for s in enabled if s.id not in in_diff_ids]

        if saved and in_diff:
            kept = remove_suggestions_related_to_saved_files(saved, in_diff)
            if len(kept) < len(in_diff):
                logger.info(
                    f"Dropped {len(in_diff) - len(kept)} new suggestion(s) for "
                    f"{file.filename}: file already has saved suggestions",
                )
            in_diff = kept

        return FileAnalysisResult(
            filename=file.filename,
            valid_suggestions=assign_rank_scores(in_diff),
            discarded_suggestions=[
                *(analysis.discarded_suggestions if analysis else []),
                *outside_diff,
            ],
            saved_suggestions=saved,
            metadata=dict(analysis.metadata) if analysis else {},
        )

    def _load_saved_suggestions(
        self,
        context: PipelineContext,
        file: FileChange,
    ) -> list[CodeSuggestion]:
        # Only re-reviews have saved suggestions to compare against.
        if self._pull_requests is None or context.last_execution is None:
            return []
        try:
            saved = self._pull_requests.find_suggestions_by_file(
                context.organization_and_team,
                context.repository,
                context.pull_request.number,
                file.filename,
            )
        except Exception as e:
            logger.warning(
                f"Could not load saved suggestions for {file.filename} "
                f"(PR#{context.pull_request.number}): {e}",
            )
            return []
        return list(saved or [])

    def _verify_implemented(
        self,
        context: PipelineContext,
        files: list[FileChange],
        saved: list[CodeSuggestion],
    ) -> None:
        if self._suggestion_service is None:
            return
        to_check = suggestions_to_verify(saved, files)
        if not to_check:
            return
        self._suggestion_service.validate_implemented_suggestions(
            context.organization_and_team,
            context.pull_request.number,
            build_code_patch(files),
            to_check,
        )
