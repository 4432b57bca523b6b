"""
Camera package.

Canonical imports:
- `from camera.camera import create_session_manager`
- `from camera.session import DeviceSessionManager, DeviceSession`
- `from camera.capture import FrameCapturer`
- `from camera.backends.opencv import OpenCVCameraBackend` (USB, RTSP, files)
"""
