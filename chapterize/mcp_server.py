"""Chapterize MCP Server — expose chapter generation as tools for any MCP-capable agent.

Run:
    python -m chapterize.mcp_server

Or add to your MCP config (e.g., Claude Desktop, Cursor):
    {
      "mcpServers": {
        "chapterize": {
          "command": "python",
          "args": ["-m", "chapterize.mcp_server"],
          "env": {
            "CHAPTERIZE_LLM_API_KEY": "sk-or-v1-your-key",
            "CHAPTERIZE_LLM_BASE_URL": "https://openrouter.ai/api/v1",
            "CHAPTERIZE_LLM_MODEL": "openai/gpt-4o-mini"
          }
        }
      }
    }
"""

from mcp.server.fastmcp import FastMCP

from .errors import ChapterizeError

mcp = FastMCP("chapterize")


@mcp.tool()
def generate_video_chapters(video_url: str, local_only: bool = False) -> str:
    """Generate YouTube chapters for a video.

    Fetches the video's transcript, then asks the configured LLM for
    5-10 chapters (falls back to a local heuristic if the LLM is unavailable).
    Returns one "MM:SS Title" line per chapter, ready to paste into a
    video description.

    Args:
        video_url: YouTube URL or 11-character video id
        local_only: skip the LLM and use the local heuristic
    """
    from .renderer import render_chapters
    from .service import generate_chapters_for_video

    try:
        result = generate_chapters_for_video(video_url, use_remote=not local_only)
    except ChapterizeError as exc:
        return f"error ({exc.kind.value}): {exc.message}"
    return render_chapters(result.chapters)


@mcp.tool()
def chapters_from_transcript(transcript: str, local_only: bool = False) -> str:
    """Generate chapters from a transcript you already have.

    Accepts plain text with [MM:SS] markers, a JSON array of segments
    ({"text", "start"} or similar), or raw caption XML/VTT.

    Args:
        transcript: the transcript text or JSON
        local_only: skip the LLM and use the local heuristic
    """
    import json

    from .renderer import render_chapters
    from .service import generate_chapters

    payload = transcript
    if transcript.lstrip().startswith("["):
        try:
            payload = json.loads(transcript)
        except json.JSONDecodeError:
            payload = transcript

    try:
        result = generate_chapters(payload, use_remote=not local_only)
    except ChapterizeError as exc:
        return f"error ({exc.kind.value}): {exc.message}"
    return render_chapters(result.chapters)


@mcp.tool()
def fetch_video_transcript(video_url: str) -> str:
    """Fetch a YouTube video's transcript as "[MM:SS] text" lines.

    Args:
        video_url: YouTube URL or 11-character video id
    """
    from .extractors import fetch_transcript
    from .transcript import normalize

    try:
        transcript = normalize(fetch_transcript(video_url))
    except ChapterizeError as exc:
        return f"error ({exc.kind.value}): {exc.message}"
    return "\n".join(f"[{s.timestamp}] {s.text}" for s in transcript)


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
