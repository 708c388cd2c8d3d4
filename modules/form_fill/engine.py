"""
Form Fill Engine - main entry point.

Selects the adapter for a document, runs analysis or a fill pass, and
processes batches of independent fill jobs.
"""

from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from modules.form_fill.config import FormFillConfig, get_form_fill_config
from modules.form_fill.core.exceptions import DocumentLoadError
from modules.form_fill.core.interfaces import (
    AnalysisResult,
    BatchJobResult,
    BatchResult,
    FillResult,
    IDocumentAdapter,
)
from modules.form_fill.core.registry import create_adapter
from modules.form_fill.core.types import (
    BatchJob,
    DataContext,
    FieldMapping,
    SpreadsheetConfig,
    Template,
)
from shared.utils.logger import log_error, log_warnings, setup_logger

logger = setup_logger(__name__)


DEFAULT_FILE_NAME_PATTERN = "{provider.lastName}_{provider.firstName}_{documentName}"
FILE_NAME_TOKENS = ("provider.lastName", "provider.firstName", "office.locationName", "documentName", "date")


def render_file_name(pattern: str, values: Dict[str, str]) -> str:
    """
    Fill a file name pattern and strip characters unsafe in file names.

    Example:
        >>> render_file_name("{provider.lastName}_{documentName}", {"provider.lastName": "O'Neil", "documentName": "W9"})
        'ONeil_W9'
    """
    name = pattern
    for token in FILE_NAME_TOKENS:
        name = name.replace("{" + token + "}", values.get(token, ""))

    name = "_".join(name.split())
    return "".join(c for c in name if c.isascii() and (c.isalnum() or c in "._-"))


def _job_paths(job: Union[BatchJob, Dict[str, Any]]) -> Tuple[str, str]:
    if isinstance(job, BatchJob):
        return job.file_path, job.output_path
    job = job if isinstance(job, dict) else {}
    return (
        str(job.get("filePath") or job.get("file_path") or ""),
        str(job.get("outputPath") or job.get("output_path") or ""),
    )


class FormFillEngine:
    """
    Main form fill engine.

    The engine never reaches into a record store: the data context is
    always passed in by the caller.

    Example:
        >>> engine = FormFillEngine()
        >>> analysis = await engine.analyze_document(file_path="forms/w9.pdf")
        >>> result = await engine.fill_document(
        ...     file_path="forms/w9.pdf",
        ...     mappings=mappings,
        ...     data={"provider": {"firstName": "Ann"}},
        ...     output_path="output/w9_ann.pdf",
        ... )
    """

    def __init__(self, config: Optional[FormFillConfig] = None):
        """
        Initialize form fill engine.

        Args:
            config: Form fill configuration (optional)
        """
        self.config = config or get_form_fill_config()
        logger.info("Initialized FormFillEngine")

    def _adapter(
        self,
        file_path: Optional[Union[str, Path]],
        file_bytes: Optional[bytes],
        document_type: Optional[str]
    ) -> IDocumentAdapter:
        if file_bytes is None:
            if not file_path:
                raise DocumentLoadError("Either file_path or file_bytes is required")
            path = Path(file_path)
            if not path.exists():
                raise DocumentLoadError(f"File does not exist: {path}")
            file_bytes = path.read_bytes()

        adapter = create_adapter(str(file_path or ""), file_bytes, document_type, self.config)

        if not adapter.can_process():
            raise DocumentLoadError("File appears to be corrupted or invalid")

        return adapter

    async def analyze_document(
        self,
        file_path: Optional[Union[str, Path]] = None,
        file_bytes: Optional[bytes] = None,
        document_type: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> AnalysisResult:
        """
        Analyze a document for fillable fields.

        Returns:
            AnalysisResult (success=False with error for unreadable documents)
        """
        try:
            adapter = self._adapter(file_path, file_bytes, document_type)
            return await adapter.analyze_document(options)
        except Exception as e:
            log_error(logger, e, f"Document analysis failed for {file_path}")
            return AnalysisResult(success=False, error=str(e))

    async def fill_document(
        self,
        *,
        file_path: Optional[Union[str, Path]] = None,
        file_bytes: Optional[bytes] = None,
        document_type: Optional[str] = None,
        mappings: List[Union[FieldMapping, Dict[str, Any]]],
        data: Union[DataContext, Dict[str, Any]],
        output_path: Union[str, Path],
        format_options: Optional[Union[SpreadsheetConfig, Dict[str, Any]]] = None
    ) -> FillResult:
        """
        Fill a document and write it to output_path.

        Args:
            file_path: Source document path (read when file_bytes is not given)
            file_bytes: Source document content
            document_type: Declared type (pdf, docx, xlsx); inferred when omitted
            mappings: Field mappings
            data: Data context
            output_path: Destination of the filled document
            format_options: Spreadsheet row configuration

        Returns:
            FillResult
        """
        try:
            adapter = self._adapter(file_path, file_bytes, document_type)
            result = await adapter.fill_document(mappings, data, output_path, format_options)
        except Exception as e:
            log_error(logger, e, f"Document filling failed for {file_path}")
            return FillResult(success=False, error=str(e))

        if result.success:
            logger.info(f"Filled {file_path} -> {result.output_path} ({len(result.warnings)} warnings)")
            log_warnings(logger, str(file_path or "document"), result.warnings)
        return result

    async def fill_from_template(
        self,
        template: Union[Template, Dict[str, Any]],
        *,
        file_path: Optional[Union[str, Path]] = None,
        file_bytes: Optional[bytes] = None,
        data: Union[DataContext, Dict[str, Any]],
        output_path: Union[str, Path],
        format_options: Optional[Union[SpreadsheetConfig, Dict[str, Any]]] = None
    ) -> FillResult:
        """Fill a document with a stored template's mappings."""
        try:
            if not isinstance(template, Template):
                template = Template.model_validate(template)
        except Exception as e:
            return FillResult(success=False, error=f"Invalid template: {e}")

        return await self.fill_document(
            file_path=file_path,
            file_bytes=file_bytes,
            document_type=template.document_type,
            mappings=template.mappings,
            data=data,
            output_path=output_path,
            format_options=format_options,
        )

    async def batch_process(self, jobs: List[Union[BatchJob, Dict[str, Any]]]) -> BatchResult:
        """
        Run independent fill jobs in order.

        A failing job is reported in its own result and never affects the
        jobs after it.
        """
        logger.info(f"Starting batch processing of {len(jobs)} documents")
        batch = BatchResult()

        for raw_job in jobs:
            input_path, output_path = _job_paths(raw_job)

            try:
                job = raw_job if isinstance(raw_job, BatchJob) else BatchJob.model_validate(raw_job)
                result = await self.fill_document(
                    file_path=job.file_path,
                    document_type=job.document_type,
                    mappings=job.mappings,
                    data=job.data,
                    output_path=job.output_path,
                    format_options=job.format_options,
                )
                batch.results.append(BatchJobResult(
                    input_path=job.file_path,
                    output_path=job.output_path,
                    success=result.success,
                    warnings=result.warnings,
                    error=result.error,
                ))
            except Exception as e:
                log_error(logger, e, f"Failed to process document {input_path}")
                batch.results.append(BatchJobResult(
                    input_path=input_path,
                    output_path=output_path,
                    success=False,
                    error=str(e),
                ))

        logger.info(f"Batch complete: {batch.success_count}/{batch.total_count} succeeded")
        return batch

    def build_batch_jobs(
        self,
        file_path: Union[str, Path],
        mappings: List[Union[FieldMapping, Dict[str, Any]]],
        providers: List[Dict[str, Any]],
        offices: Optional[List[Dict[str, Any]]] = None,
        output_dir: Optional[Union[str, Path]] = None,
        file_name_pattern: str = DEFAULT_FILE_NAME_PATTERN,
        mailing_address: Optional[Dict[str, Any]] = None,
        custom: Optional[Dict[str, Any]] = None
    ) -> List[BatchJob]:
        """
        One job per provider x office combination (per provider without offices).

        Output files keep the source document's extension and are named from
        file_name_pattern; repeated names get a numeric suffix.
        """
        source = Path(file_path)
        output_dir = Path(output_dir or self.config.output_dir)
        today = date.today().isoformat()

        jobs: List[BatchJob] = []
        used_names: Dict[str, int] = {}

        for provider in providers:
            for office in (offices or [None]):
                values = {
                    "provider.lastName": str(provider.get("lastName") or "Provider"),
                    "provider.firstName": str(provider.get("firstName") or ""),
                    "office.locationName": str((office or {}).get("locationName") or "Office"),
                    "documentName": source.stem,
                    "date": today,
                }
                name = render_file_name(file_name_pattern, values) or source.stem

                count = used_names.get(name, 0)
                used_names[name] = count + 1
                if count:
                    name = f"{name}_{count + 1}"

                jobs.append(BatchJob(
                    file_path=str(source),
                    mappings=mappings,
                    data=DataContext(
                        provider=provider,
                        office=office,
                        mailing_address=mailing_address,
                        custom=custom or {},
                    ),
                    output_path=str(output_dir / f"{name}{source.suffix}"),
                ))

        logger.info(f"Built {len(jobs)} batch jobs from {len(providers)} providers")
        return jobs
