"""PubMed evidence source backed by the NCBI E-utilities API."""

from typing import List

from ...domain.models.evidence import Evidence, EvidenceSourceType
from .base import HTTPSearchSource

EUTILS_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"


class PubMedAdapter(HTTPSearchSource):
    """Searches PubMed and returns article titles with publication details."""

    source_name = "PubMed"

    async def _search(self, query: str, max_results: int) -> List[Evidence]:
        search_data = await self._get_json(
            f"{EUTILS_URL}/esearch.fcgi",
            params={"db": "pubmed", "term": query, "retmax": max_results, "retmode": "json"},
        )
        pmids = search_data.get("esearchresult", {}).get("idlist", [])
        if not pmids:
            return []

        summary_data = await self._get_json(
            f"{EUTILS_URL}/esummary.fcgi",
            params={"db": "pubmed", "id": ",".join(pmids), "retmode": "json"},
        )
        result = summary_data.get("result", {})

        evidences = []
        for pmid in pmids:
            article = result.get(pmid)
            if not isinstance(article, dict) or not article.get("title"):
                continue
            snippet = article["title"]
            if article.get("source"):
                snippet += f" (Published in {article['source']}, {article.get('pubdate', '')})"
            evidences.append(
                Evidence(
                    source_name="PubMed",
                    source_url=f"https://pubmed.ncbi.nlm.nih.gov/{pmid}/",
                    source_type=EvidenceSourceType.ACADEMIC,
                    snippet=snippet,
                )
            )
        return evidences
