"""
BloomFrame Backend — Invoice PDF Converter
============================================

What:  Converts rendered invoice HTML into PDF bytes with an external
       HTML-to-PDF binary (wkhtmltopdf unless INVOICE_PDF_BIN says otherwise).
How:   1. Write the HTML to a temp file named invoice-*.html
       2. Run: <bin> --enable-local-file-access --print-media-type <html> <pdf>
       3. Read the PDF back into memory
       4. Remove both temp files, whatever happened
Who:   EmailService, when sending an invoice.

The subprocess is awaited without a timeout; a hung converter stalls
the request that started it.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

import aiofiles

from bloomframe.config import settings
from bloomframe.exceptions import ConversionError

logger = logging.getLogger(__name__)

CONVERTER_ARGS = ("--enable-local-file-access", "--print-media-type")


class PdfService:
    def __init__(self, binary: str):
        self.binary = binary

    def _command(self, html_path: Path, pdf_path: Path) -> list:
        return [self.binary, *CONVERTER_ARGS, str(html_path), str(pdf_path)]

    async def render(self, html: str) -> bytes:
        """
        Converts an HTML document to PDF bytes.

        Raises:
            ConversionError: the binary is missing, exits non-zero (details
                carry its stderr), or the temp files cannot be used.
        """
        fd, html_name = tempfile.mkstemp(prefix="invoice-", suffix=".html")
        os.close(fd)
        html_path = Path(html_name)
        pdf_path = html_path.with_suffix(".pdf")

        try:
            async with aiofiles.open(html_path, "w", encoding="utf-8") as f:
                await f.write(html)

            try:
                process = await asyncio.create_subprocess_exec(
                    *self._command(html_path, pdf_path),
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as exc:
                raise ConversionError(
                    f"{self.binary} failed: executable not found: {exc}",
                    context={"binary": self.binary},
                ) from exc

            _, stderr = await process.communicate()
            if process.returncode != 0:
                message = stderr.decode("utf-8", errors="replace").strip()
                details = f"{self.binary} failed: exit status {process.returncode}"
                if message:
                    details = f"{details}: {message}"
                logger.error("PDF conversion failed: %s", details)
                raise ConversionError(details, context={"binary": self.binary})

            async with aiofiles.open(pdf_path, "rb") as f:
                content = await f.read()

            logger.info("Invoice PDF generated (%d bytes)", len(content))
            return content

        except OSError as exc:
            raise ConversionError(
                f"{self.binary} failed: {exc}",
                context={"html_path": str(html_path)},
            ) from exc

        finally:
            for path in (html_path, pdf_path):
                try:
                    path.unlink(missing_ok=True)
                except OSError as exc:
                    logger.warning("Failed to remove temp file %s: %s", path, exc)


pdf_service = PdfService(settings.invoice_pdf_bin)
