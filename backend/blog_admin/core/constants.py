# 게시글 필드 제약조건
TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255
EXCERPT_MIN_LENGTH = 10
CONTENT_MIN_LENGTH = 50
MAX_READ_TIME = 24 * 60  # 분

# 대표 이미지 컬럼 길이
IMAGE_URL_MAX_LENGTH = 1000
IMAGE_PUBLIC_ID_MAX_LENGTH = 255

# 목록 조회 페이지 크기
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# 업로드 허용 MIME 접두사
ALLOWED_UPLOAD_CONTENT_PREFIX = "image/"
