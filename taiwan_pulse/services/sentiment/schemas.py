"""情緒分析 JSON Schemas — LLM 結構化輸出 schema."""

SENTIMENT_LABELS = ["Bullish", "Bearish", "Neutral"]

# --- 輕量: 列表頁每篇貼文 ---
FORUM_SENTIMENT_SCHEMA = {
    "type": "object",
    "required": ["sentiment", "reason"],
    "properties": {
        "sentiment": {"type": "string", "enum": SENTIMENT_LABELS},
        "reason": {"type": "string"},
    },
}

# --- 深度: 單篇文章 + 推文意見整理 ---
ARTICLE_ANALYSIS_SCHEMA = {
    "type": "object",
    "required": ["sentiment", "reason", "opinions"],
    "properties": {
        "sentiment": {"type": "string", "enum": SENTIMENT_LABELS},
        "reason": {"type": "string"},
        "opinions": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["type", "content"],
                "properties": {
                    "type": {"type": "string", "enum": SENTIMENT_LABELS},
                    "content": {"type": "string"},
                },
            },
        },
    },
}
