TEST_REGION = "us-east-1"

TEST_IMAGE_NAME = "photo.PNG"
TEST_IMAGE_CONTENT = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
TEST_PDF_NAME = "contract.pdf"
TEST_PDF_CONTENT = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<</Root 1 0 R>>\n%%EOF"
TEST_CUSTOMER_ID = "C42"
