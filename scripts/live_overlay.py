"""Run a live emotion session with an OpenCV preview window.

Usage:
    uvicorn api.main:app --reload  # (separate, for the chart API)
    python scripts/live_overlay.py  # (to see camera overlay window)

Press 'q' to quit the window.
"""
import logging

import cv2

from analytics.config import Settings
from analytics.live import LiveSession


def run_live_overlay(settings: Settings) -> None:
    session = LiveSession(settings)
    session.start()
    try:
        while True:
            frame = session.overlay()
            if frame is not None:
                st = session.status()
                cv2.putText(frame, f"{st.display}  |  Session Time: {st.session_seconds}s", (10, 30),
                            cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2, cv2.LINE_AA)
                cv2.imshow("Emotion Analytics (q to quit)", frame)
            if (cv2.waitKey(30) & 0xFF) == ord("q"):
                break
    finally:
        session.stop()
        cv2.destroyAllWindows()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    run_live_overlay(Settings())
