import pandas as pd
from typing import Any, Dict, List
from sqlalchemy.orm import Session
from vidanalytica.models.channel import Channel
from vidanalytica.models.video import Video
from vidanalytica.models.transcript import Transcript
from vidanalytica.models.idea import Idea
from vidanalytica.models.user import User

IDEA_EXPORT_COLUMNS = [
    "id", "video_title", "channel_name", "category", "title",
    "description", "tags", "rating", "is_favorite", "created_at",
]
TOP_TOPICS_LIMIT = 5


class AnalyticsService:
    @staticmethod
    def dashboard_stats(db: Session, user: User) -> Dict[str, int]:
        """Totals shown on the dashboard cards"""
        channels = db.query(Channel).filter(Channel.user_id == user.id)
        videos = db.query(Video).join(Channel).filter(Channel.user_id == user.id)
        transcripts = db.query(Transcript).join(Video).join(Channel).filter(
            Channel.user_id == user.id
        )
        ideas = db.query(Idea).join(Video).join(Channel).filter(Channel.user_id == user.id)
        return {
            "total_channels": channels.count(),
            "total_videos": videos.count(),
            "total_transcripts": transcripts.count(),
            "total_ideas": ideas.count(),
        }

    @staticmethod
    def channel_analytics(db: Session, channel: Channel) -> Dict[str, Any]:
        """Aggregate one channel's videos and ideas into dashboard metrics"""
        videos = db.query(Video).filter(Video.channel_id == channel.id).all()
        videos_df = pd.DataFrame(
            [
                {
                    "id": v.id,
                    "views": v.views or 0,
                    "likes": v.likes or 0,
                    "upload_date": v.upload_date,
                    "transcript_status": v.transcript_status,
                }
                for v in videos
            ],
            columns=["id", "views", "likes", "upload_date", "transcript_status"],
        )

        ideas = db.query(Idea).join(Video).filter(Video.channel_id == channel.id).all()
        tags_series = pd.Series([tag for idea in ideas for tag in (idea.tags or [])], dtype="object")

        metrics = {
            "average_views": 0.0,
            "engagement_rate": 0.0,
            "upload_frequency": 0.0,
            "total_videos": len(videos_df),
            "transcribed_videos": int((videos_df["transcript_status"] == "completed").sum()),
            "ideas_generated": len(ideas),
        }
        performance: List[Dict[str, Any]] = []

        if not videos_df.empty:
            metrics["average_views"] = round(float(videos_df["views"].mean()), 2)

            watched = videos_df[videos_df["views"] > 0]
            if not watched.empty:
                engagement = watched["likes"] / watched["views"] * 100
                metrics["engagement_rate"] = round(float(engagement.mean()), 2)

            dated = videos_df.dropna(subset=["upload_date"]).copy()
            if not dated.empty:
                dated["upload_date"] = pd.to_datetime(dated["upload_date"], utc=True)
                span_days = (dated["upload_date"].max() - dated["upload_date"].min()).days
                # Uploads per week; a single day of uploads counts as one week
                weeks = max(span_days / 7, 1)
                metrics["upload_frequency"] = round(len(dated) / weeks, 2)

                dated["date"] = dated["upload_date"].dt.strftime("%Y-%m-%d")
                dated["engagement"] = (
                    dated["likes"] / dated["views"].where(dated["views"] > 0) * 100
                ).fillna(0.0)
                daily = dated.groupby("date").agg(
                    views=("views", "sum"), engagement=("engagement", "mean")
                ).reset_index()
                performance = [
                    {
                        "date": row.date,
                        "views": int(row.views),
                        "engagement": round(float(row.engagement), 2),
                    }
                    for row in daily.itertuples(index=False)
                ]

        top_topics: List[Dict[str, Any]] = []
        if not tags_series.empty:
            counts = tags_series.value_counts().head(TOP_TOPICS_LIMIT)
            total = int(counts.sum())
            top_topics = [
                {
                    "topic": topic,
                    "count": int(count),
                    "percentage": round(int(count) / total * 100),
                }
                for topic, count in counts.items()
            ]

        return {
            "channel_id": channel.id,
            "channel_name": channel.name,
            "metrics": metrics,
            "performance_data": performance,
            "top_topics": top_topics,
        }

    @staticmethod
    def ideas_to_csv(ideas: List[Any]) -> str:
        """Render idea rows (pydantic models) as CSV text"""
        rows = []
        for idea in ideas:
            row = idea.model_dump()
            row["tags"] = "; ".join(row.get("tags") or [])
            rows.append(row)
        df = pd.DataFrame(rows, columns=IDEA_EXPORT_COLUMNS)
        return df.to_csv(index=False)


analytics_service = AnalyticsService()
