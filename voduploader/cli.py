#!/usr/bin/env python3
"""
Command line uploader for VOD media

Credentials come from the environment or .env (VOD_ACCESS_KEY_ID,
VOD_ACCESS_KEY_SECRET); see voduploader.config.
"""

import argparse
import json
import logging
import sys

from voduploader.config import settings
from voduploader.core.errors import VodUploadError
from voduploader.models.upload_request import (
    UploadAttachedMediaRequest,
    UploadImageRequest,
    UploadVideoRequest,
)
from voduploader.services.uploader import UploadServiceBuilder
from voduploader.utils import is_url


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Upload local or web media files to VOD",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Local video with a title
  voduploader video /opt/video/sample.mp4 --title "My video"

  # Web image
  voduploader image https://example.com/cover.png

  # Subtitle file
  voduploader attached /opt/sub/sample.srt --business-type subtitle

  # Local m3u8, segments resolved next to the playlist
  voduploader m3u8 /opt/hls/sample.m3u8
        """
    )
    parser.add_argument("kind", choices=["video", "image", "attached", "m3u8"], help="Media kind")
    parser.add_argument("path", help="Absolute local path or URL of the media file")
    parser.add_argument("--title", help="Media title (default: file name)")
    parser.add_argument("--description", help="Media description")
    parser.add_argument("--cate-id", type=int, help="Category id")
    parser.add_argument("--tags", help="Comma separated tags")
    parser.add_argument("--storage-location", help="Storage location")
    parser.add_argument("--cover-url", help="Cover image URL (video)")
    parser.add_argument("--template-group-id", help="Transcode template group id (video)")
    parser.add_argument("--workflow-id", help="Workflow id")
    parser.add_argument("--app-id", help="App id")
    parser.add_argument("--image-type", default="default", help="Image type (image)")
    parser.add_argument("--business-type", default="watermark", help="Business type (attached)")
    parser.add_argument("--slice", action="append", dest="slices",
                        help="Segment path or URL (m3u8); repeatable, parsed from the playlist if omitted")
    parser.add_argument("--no-watermark", action="store_true", help="Shut down the global watermark (video)")
    parser.add_argument("--ecs-region", default=settings.VOD_ECS_REGION_ID,
                        help="ECS region of this host, enables internal OSS endpoints")
    parser.add_argument("--ssl", action="store_true", default=settings.VOD_ENABLE_SSL, help="Use HTTPS")
    parser.add_argument("--log-level", default=settings.VOD_LOG_LEVEL, help="Logging level")
    return parser


def build_request(args):
    if args.kind in ("video", "m3u8"):
        request = UploadVideoRequest(args.path, args.title)
        request.cover_url = args.cover_url
        request.template_group_id = args.template_group_id
        if args.no_watermark:
            request.shutdown_watermark()
    elif args.kind == "image":
        request = UploadImageRequest(args.path, args.title)
        request.image_type = args.image_type
    else:
        request = UploadAttachedMediaRequest(args.path, args.business_type, args.title)

    request.description = args.description
    request.cate_id = args.cate_id
    request.tags = args.tags
    request.storage_location = args.storage_location
    request.workflow_id = args.workflow_id
    request.app_id = args.app_id
    return request


def run(args) -> dict:
    request = build_request(args)
    web = is_url(args.path)

    with UploadServiceBuilder.build() as uploader:
        uploader.set_ecs_region_id(args.ecs_region)
        uploader.set_enable_ssl(args.ssl)

        if args.kind == "video":
            video_id = uploader.upload_web_video(request) if web else uploader.upload_local_video(request)
            return {"VideoId": video_id}
        if args.kind == "m3u8":
            if web:
                video_id = uploader.upload_web_m3u8(request, args.slices)
            else:
                video_id = uploader.upload_local_m3u8(request, args.slices)
            return {"VideoId": video_id}
        if args.kind == "image":
            return uploader.upload_web_image(request) if web else uploader.upload_local_image(request)
        return uploader.upload_web_attached_media(request) if web else uploader.upload_local_attached_media(request)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        result = run(args)
    except VodUploadError as e:
        logging.getLogger(__name__).error(f"Upload failed: {e}")
        return 1

    print(json.dumps(result, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
