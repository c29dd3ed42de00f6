"""
Event driven usage - render several images on the most popular model
and react to job and project events instead of awaiting the result.

Environment:
    SOGNI_APP_ID         unique id of this client (required)
    SOGNI_REFRESH_TOKEN  refresh token saved from a previous session (required)
"""
import asyncio
import logging
import os
import sys

from sogni_client import ProjectParams, SogniClient, SogniError

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


async def get_client() -> SogniClient:
    client = await SogniClient.create_instance(app_id=os.environ["SOGNI_APP_ID"])
    await client.account.login({"refresh_token": os.environ["SOGNI_REFRESH_TOKEN"]})
    await client.projects.wait_for_models()
    return client


async def main() -> int:
    try:
        client = await get_client()
    except (KeyError, SogniError, asyncio.TimeoutError) as e:
        logger.error(f"Error initializing Sogni client: {e!r}")
        return 1

    done = asyncio.Event()
    try:
        # Model served by the most workers
        model = max(client.projects.available_models, key=lambda m: m.worker_count)
        project = await client.projects.create(ProjectParams(
            model_id=model.id,
            positive_prompt="A cat wearing a hat",
            negative_prompt="malformation, bad anatomy, low quality, jpeg artifacts, watermark",
            style_prompt="anime",
            steps=20,
            guidance=7.5,
            number_of_images=4
        ))

        # A job result is usable before the whole project completes
        project.on("jobCompleted", lambda job: logger.info(f"Job completed: {job.id} {job.result_url}"))
        project.on("jobFailed", lambda job: logger.warning(f"Job failed: {job.id} {job.error!r}"))
        project.on("progress", lambda progress: logger.debug(f"Project progress: {progress}%"))

        def on_completed(urls):
            logger.info(f"[OK] Project completed with {len(urls)} image(s)")
            done.set()

        def on_failed(error):
            logger.error(f"[ERROR] Project failed: {error!r}")
            done.set()

        project.on("completed", on_completed)
        project.on("failed", on_failed)

        await done.wait()
        return 0 if project.status.value == "completed" else 1
    except SogniError as e:
        logger.error(f"[ERROR] {e!r}")
        return 1
    finally:
        await client.account.logout()
        await client.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
