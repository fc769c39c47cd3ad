"""Prompt construction and website template lookup."""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit

from fractal.core.constants import WEBSITE_TEMPLATES, WebsiteTemplate

logger = logging.getLogger(__name__)

_SCHEME_AND_HOST = re.compile(r"^https?://[^/]+", re.IGNORECASE)

PROMPT_TEMPLATE = """\
Recreate the web page at: {url}

DOMAIN: {domain}
PAGE: {path}
SITE TYPE: {template_name} ({template_description})

If you know this website from your training data, reproduce its real layout,
colors and content as closely as you can. Otherwise design a believable site
that fits the domain name and the requested page.

Requirements:
- One complete, self-contained HTML document with all CSS in a <style> tag
- No JavaScript and no external resources
- Internal links must be relative (for example href="/about"), so every link
  leads to another page of the same site
- Realistic, specific text content; no lorem ipsum

Answer in exactly this format:

<thinking>
What you know about {domain} and how you will structure the page.
</thinking>

<code>
<!DOCTYPE html>
<html>
...
</html>
</code>
"""


class PromptBuilder:
    """URL -> prompt string. The wording is opaque to the rest of the core."""

    def generate_prompt(self, url: str) -> str:
        domain = self.extract_domain(url)
        template = self.detect_website_template(domain)
        path = _SCHEME_AND_HOST.sub("", url) or "/"
        return PROMPT_TEMPLATE.format(
            url=url,
            domain=domain,
            path=path,
            template_name=template.name,
            template_description=template.description,
        )

    @staticmethod
    def extract_domain(url: str) -> str:
        """Hostname without a ``www.`` prefix; the raw string if unparseable."""
        try:
            hostname = urlsplit(url).hostname
        except ValueError:
            hostname = None
        if not hostname:
            return url.replace("www.", "", 1)
        return hostname.replace("www.", "", 1)

    def detect_website_template(self, domain: str) -> WebsiteTemplate:
        # The model decides what kind of site a domain is; the template is only
        # a neutral hint.
        template = self.template_by_type("corporate") or WEBSITE_TEMPLATES[0]
        logger.debug(f"Template for {domain}: {template.type}")
        return template

    @staticmethod
    def available_templates() -> list[WebsiteTemplate]:
        return list(WEBSITE_TEMPLATES)

    @staticmethod
    def template_by_type(template_type: str) -> WebsiteTemplate | None:
        for template in WEBSITE_TEMPLATES:
            if template.type == template_type:
                return template
        return None
