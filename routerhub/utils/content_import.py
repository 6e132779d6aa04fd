"""
Markdown importers for blog posts and docs.

FLOW OVERVIEW
- import_blogs(directory)
  • Every *.md file becomes a Post; front matter is read with python-frontmatter.
  • slug = front matter `url`, then `slug`, then the file name without .md.
  • Posts whose slug already exists are skipped, never overwritten.
  • excerpt defaults to the first 150 plain-text characters of the body,
    cover image to the first Markdown image.
- import_docs(base_dir)
  • Each sub-directory is a locale (en, zh, ...); its *.md files become Docs.
  • An existing (slug, locale) pair is updated in place.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List

import frontmatter

from ..models import db, Doc, Post
from .api_utils import parse_datetime

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 150

MARKDOWN_STRIP_RULES = [
    (re.compile(r'```[\s\S]*?```'), ''),
    (re.compile(r'!\[[^\]]*\]\([^)]+\)'), ''),
    (re.compile(r'\[([^\]]+)\]\([^)]+\)'), r'\1'),
    (re.compile(r'#{1,6}\s+'), ''),
    (re.compile(r'\*\*(.*?)\*\*'), r'\1'),
    (re.compile(r'\*(.*?)\*'), r'\1'),
    (re.compile(r'`(.*?)`'), r'\1'),
    (re.compile(r'^\s*[-*+]\s+', re.MULTILINE), ''),
    (re.compile(r'^\s*\d+\.\s+', re.MULTILINE), ''),
    (re.compile(r'^\s*>\s+', re.MULTILINE), ''),
    (re.compile(r'\n\s*\n'), '\n'),
]
IMAGE_RE = re.compile(r'!\[[^\]]*\]\(([^)\s]+)[^)]*\)')
DOC_TIMESTAMP_RE = re.compile(r'\s*-?\s*\d{4}-\d{2}-\d{2}\s+\d{2}_\d{2}_\d{2}$')


@dataclass
class ImportSummary:
    total: int = 0
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            'total': self.total,
            'imported': self.imported,
            'updated': self.updated,
            'skipped': self.skipped,
            'errors': len(self.errors),
        }


def generate_excerpt(content):
    """Strip Markdown syntax and cut to EXCERPT_LENGTH characters plus '...'"""
    text = content or ''
    for pattern, replacement in MARKDOWN_STRIP_RULES:
        text = pattern.sub(replacement, text)
    text = text.strip()
    return text[:EXCERPT_LENGTH] + '...' if len(text) > EXCERPT_LENGTH else text


def extract_cover_image_url(content):
    match = IMAGE_RE.search(content or '')
    return match.group(1) if match else None


def slug_from_url(url):
    slug = re.sub(r'[^a-z0-9\-_]', '-', url.lower())
    return re.sub(r'-+', '-', slug).strip('-')


def slug_from_filename(filename):
    slug = re.sub(r'\.md$', '', filename).lower()
    slug = re.sub(r'[\s_]+', '-', slug)
    slug = re.sub(r'[^a-z0-9\-]', '', slug)
    return re.sub(r'-+', '-', slug).strip('-') or 'untitled'


def _published_at(value):
    # YAML turns unquoted dates into date/datetime objects
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    return parse_datetime(value)


def _markdown_files(directory):
    return sorted(name for name in os.listdir(directory) if name.endswith('.md'))


def _first_heading(content):
    for line in content.splitlines():
        if line.startswith('# '):
            return line[2:].strip()
    return None


def build_post(filename, text):
    """Post fields from one Markdown file; the row is not added to the session"""
    document = frontmatter.loads(text)
    meta = document.metadata
    content = document.content
    slug = str(meta.get('url') or meta.get('slug') or re.sub(r'\.md$', '', filename))
    return Post(
        slug=slug,
        title=meta.get('title') or _first_heading(content) or slug,
        excerpt=meta.get('excerpt') or generate_excerpt(content),
        cover_image_url=(meta.get('cover_image_url') or meta.get('coverImageUrl')
                         or extract_cover_image_url(content)),
        content=content,
        published_at=_published_at(meta.get('publishedAt') or meta.get('date')),
    )


def import_blogs(directory):
    """
    Import every Markdown file in `directory` as a blog post.

    Raises:
        FileNotFoundError: `directory` does not exist
    """
    if not os.path.isdir(directory):
        raise FileNotFoundError(f'Blog directory not found: {directory}')

    summary = ImportSummary()
    for filename in _markdown_files(directory):
        summary.total += 1
        try:
            with open(os.path.join(directory, filename), encoding='utf-8') as handle:
                post = build_post(filename, handle.read())
            if Post.query.filter_by(slug=post.slug).first():
                logger.info(f"Skipping existing post {post.slug}")
                summary.skipped += 1
                continue
            db.session.add(post)
            db.session.commit()
            logger.info(f"Imported post {post.slug}")
            summary.imported += 1
        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to import {filename}: {e}")
            summary.errors.append(filename)
    return summary


def parse_doc(filename, text):
    document = frontmatter.loads(text)
    meta = document.metadata
    base_name = re.sub(r'\.md$', '', filename)
    url = meta.get('url')
    return {
        'title': meta.get('title') or DOC_TIMESTAMP_RE.sub('', base_name).strip(),
        'slug': slug_from_url(str(url)) if url else slug_from_filename(filename),
        'content': document.content.strip(),
        'cover_image_url': extract_cover_image_url(document.content),
    }


def import_docs(base_dir):
    """
    Import docs from one sub-directory per locale, updating existing (slug, locale) rows.

    Raises:
        FileNotFoundError: `base_dir` does not exist
    """
    if not os.path.isdir(base_dir):
        raise FileNotFoundError(f'Docs directory not found: {base_dir}')

    summary = ImportSummary()
    locales = sorted(name for name in os.listdir(base_dir)
                     if os.path.isdir(os.path.join(base_dir, name)))
    for locale in locales:
        locale_dir = os.path.join(base_dir, locale)
        for filename in _markdown_files(locale_dir):
            summary.total += 1
            try:
                with open(os.path.join(locale_dir, filename), encoding='utf-8') as handle:
                    fields = parse_doc(filename, handle.read())
                doc = Doc.get_by_slug_and_locale(fields['slug'], locale)
                if doc:
                    doc.title = fields['title']
                    doc.content = fields['content']
                    doc.cover_image_url = fields['cover_image_url']
                else:
                    db.session.add(Doc(locale=locale, **fields))
                db.session.commit()
                if doc:
                    summary.updated += 1
                else:
                    summary.imported += 1
                logger.info(f"Imported doc {fields['slug']} [{locale}]")
            except Exception as e:
                db.session.rollback()
                logger.error(f"Failed to import {locale}/{filename}: {e}")
                summary.errors.append(f'{locale}/{filename}')
    return summary
